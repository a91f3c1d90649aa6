import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from pathfinder.core.errors import Internal, InvalidInput, NotFound
from pathfinder.models.orm import Assessment
from pathfinder.services import assessments


async def test_submit_scores_and_recommends(db, corpus):
    result = await assessments.submit_assessment(db, "u1", [{"question_id": "q-net", "response": "B"}])

    assert result["assessment"].score_vector == {"network": 100, "security": 0}
    assert result["strengths"] == ["network"]
    assert result["weaknesses"] == ["security"]
    assert [t["title"] for t in result["recommended_tracks"]] == ["Network Fundamentals"]
    assert result["assessment"].recommended_tracks == result["recommended_tracks"]
    assert result["assessment"].raw_answers == [{"question_id": "q-net", "response": "B"}]


async def test_submit_without_strengths_falls_back(db, corpus):
    result = await assessments.submit_assessment(db, "u1", [])
    titles = [t["title"] for t in result["recommended_tracks"]]
    assert titles == ["Network Fundamentals", "Cloud Basics", "Python Programming"]


async def test_submit_always_creates_a_new_row(db, corpus):
    answers = [{"question_id": "q-net", "response": "B"}]
    first = await assessments.submit_assessment(db, "u1", answers)
    second = await assessments.submit_assessment(db, "u1", answers)

    assert first["assessment"].id != second["assessment"].id
    assert first["assessment"].score_vector == second["assessment"].score_vector
    count = await db.scalar(select(func.count()).select_from(Assessment).where(Assessment.user_id == "u1"))
    assert count == 2


@pytest.mark.parametrize("user_id,answers", [(None, []), ("", []), ("u1", None)])
async def test_submit_rejects_missing_input(db, user_id, answers):
    with pytest.raises(InvalidInput):
        await assessments.submit_assessment(db, user_id, answers)
    assert await db.scalar(select(func.count()).select_from(Assessment)) == 0


async def test_latest_returns_most_recent(db, corpus):
    await assessments.submit_assessment(db, "u1", [])
    newest = await assessments.submit_assessment(db, "u1", [{"question_id": "q-sec", "response": "A"}])
    await assessments.submit_assessment(db, "u2", [])

    latest = await assessments.get_latest_assessment(db, "u1")
    assert latest.id == newest["assessment"].id
    assert latest.score_vector == {"network": 0, "security": 100}


async def test_latest_is_stable_between_submissions(db, corpus):
    await assessments.submit_assessment(db, "u1", [])
    first = await assessments.get_latest_assessment(db, "u1")
    second = await assessments.get_latest_assessment(db, "u1")
    assert first.id == second.id


async def test_failed_commit_is_internal_and_stores_nothing(db, corpus, monkeypatch):
    async def broken_commit():
        raise OperationalError("INSERT INTO assessments", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(Internal):
        await assessments.submit_assessment(db, "u1", [{"question_id": "q-net", "response": "B"}])

    monkeypatch.undo()
    assert await db.scalar(select(func.count()).select_from(Assessment)) == 0


async def test_latest_without_assessment(db):
    with pytest.raises(NotFound):
        await assessments.get_latest_assessment(db, "nobody")
    with pytest.raises(InvalidInput):
        await assessments.get_latest_assessment(db, "")


async def test_patch_recommended_tracks_only(db, corpus):
    created = (await assessments.submit_assessment(db, "u1", [{"question_id": "q-net", "response": "B"}]))["assessment"]
    assessment_id = created.id
    before = (created.score_vector, created.raw_answers)

    new_tracks = [{"id": "t-x", "title": "Other"}]
    await assessments.update_recommended_tracks(db, assessment_id, new_tracks)

    db.expire_all()
    row = await db.get(Assessment, assessment_id)
    assert row.recommended_tracks == new_tracks
    assert (row.score_vector, row.raw_answers) == before
    assert row.ai_feedback is None


async def test_store_feedback_keeps_scores(db, corpus):
    created = (await assessments.submit_assessment(db, "u1", []))["assessment"]
    assessment_id = created.id
    await assessments.store_feedback(db, assessment_id, "Nice work", "Network Engineer", "1. Practice")

    db.expire_all()
    row = await db.get(Assessment, assessment_id)
    assert (row.ai_feedback, row.ai_career_path, row.ai_next_steps) == ("Nice work", "Network Engineer", "1. Practice")
    assert row.score_vector == {"network": 0, "security": 0}


async def test_patch_unknown_assessment(db):
    with pytest.raises(NotFound):
        await assessments.update_recommended_tracks(db, "missing", [])


async def test_recommended_courses_resolves_tracks(db, corpus):
    await assessments.submit_assessment(db, "u1", [{"question_id": "q-net", "response": "B"}])
    courses = await assessments.recommended_courses(db, "u1")
    assert [t.title for t in courses] == ["Network Fundamentals"]
    assert len(courses[0].modules) == 2


async def test_recommended_courses_falls_back_when_ids_are_stale(db, corpus):
    created = (await assessments.submit_assessment(db, "u1", []))["assessment"]
    await assessments.update_recommended_tracks(db, created.id, [{"id": "gone"}])
    courses = await assessments.recommended_courses(db, "u1")
    assert [t.title for t in courses] == ["Network Fundamentals", "Cloud Basics", "Python Programming"]
