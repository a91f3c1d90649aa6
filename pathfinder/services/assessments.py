"""
Assessment submission and lookup.

An assessment row is written once by ``submit_assessment``; afterwards only
``update_recommended_tracks`` and ``store_feedback`` may patch it.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathfinder.core.errors import Internal, InvalidInput, NotFound
from pathfinder.models.orm import Assessment, Module, Question, Track
from pathfinder.services import scoring

logger = logging.getLogger(__name__)

SUBMIT_TRACK_LIMIT = 3


async def load_questions(db: AsyncSession) -> List[Question]:
    return list((await db.execute(select(Question).order_by(Question.id))).scalars().all())


async def load_tracks(db: AsyncSession) -> List[Track]:
    stmt = select(Track).order_by(Track.created_at, Track.id)
    return list((await db.execute(stmt)).scalars().all())


async def submit_assessment(db: AsyncSession, user_id: Optional[str], answers: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    if not user_id or answers is None:
        raise InvalidInput("Missing user_id or answers")

    try:
        questions = await load_questions(db)
        tracks = await load_tracks(db)
        score_vector = scoring.score(questions, answers)
        strengths, weaknesses = scoring.classify(score_vector)
        recommended = [t.summary() for t in scoring.recommend(tracks, strengths, limit=SUBMIT_TRACK_LIMIT)]

        assessment = Assessment(
            user_id=user_id,
            raw_answers=answers,
            score_vector=score_vector,
            recommended_tracks=recommended,
        )
        db.add(assessment)
        await db.commit()
        await db.refresh(assessment)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Assessment submission failed for user {user_id}: {e}", exc_info=True)
        raise Internal("Failed to submit assessment")

    logger.info(f"Stored assessment {assessment.id} for user {user_id} ({len(score_vector)} tags)")
    return {
        "assessment": assessment,
        "strengths": strengths,
        "weaknesses": weaknesses,
        "recommended_tracks": recommended,
    }


async def find_latest(db: AsyncSession, user_id: str) -> Optional[Assessment]:
    stmt = (
        select(Assessment)
        .where(Assessment.user_id == user_id)
        .order_by(Assessment.created_at.desc(), Assessment.id.desc())
        .limit(1)
    )
    return await db.scalar(stmt)


async def get_latest_assessment(db: AsyncSession, user_id: str) -> Assessment:
    if not user_id:
        raise InvalidInput("Missing user_id")
    assessment = await find_latest(db, user_id)
    if assessment is None:
        raise NotFound("No assessment found")
    return assessment


async def _get(db: AsyncSession, assessment_id: str) -> Assessment:
    assessment = await db.get(Assessment, assessment_id)
    if assessment is None:
        raise NotFound("Assessment not found")
    return assessment


async def update_recommended_tracks(db: AsyncSession, assessment_id: str, tracks: List[Dict[str, Any]], commit: bool = True) -> Assessment:
    """Overwrite only the recommended tracks of an existing assessment."""
    assessment = await _get(db, assessment_id)
    assessment.recommended_tracks = tracks
    if commit:
        await db.commit()
    return assessment


async def store_feedback(db: AsyncSession, assessment_id: str, feedback: str, career_path: str, next_steps: str, commit: bool = True) -> Assessment:
    """Overwrite only the generated feedback columns of an existing assessment."""
    assessment = await _get(db, assessment_id)
    assessment.ai_feedback = feedback
    assessment.ai_career_path = career_path
    assessment.ai_next_steps = next_steps
    if commit:
        await db.commit()
    return assessment


async def recommended_courses(db: AsyncSession, user_id: str) -> List[Track]:
    """Full track rows referenced by the user's latest assessment."""
    assessment = await get_latest_assessment(db, user_id)
    ids = [t.get("id") for t in (assessment.recommended_tracks or []) if isinstance(t, dict)]
    with_modules = selectinload(Track.modules).selectinload(Module.lessons)

    recommended: List[Track] = []
    if ids:
        stmt = select(Track).where(Track.id.in_(ids)).options(with_modules)
        recommended = list((await db.execute(stmt)).scalars().all())
    if not recommended:
        stmt = select(Track).order_by(Track.created_at, Track.id).limit(scoring.FALLBACK_TRACKS).options(with_modules)
        recommended = list((await db.execute(stmt)).scalars().all())
    return recommended
