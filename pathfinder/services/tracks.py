import logging
from typing import Any, Dict, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathfinder.core.errors import InvalidInput, NotFound
from pathfinder.models.orm import Lesson, Module, Question, Track, TrackProgress

logger = logging.getLogger(__name__)


def _with_content():
    return selectinload(Track.modules).selectinload(Module.lessons)


async def list_tracks(db: AsyncSession) -> List[Track]:
    stmt = select(Track).order_by(Track.created_at, Track.id).options(_with_content())
    return list((await db.execute(stmt)).scalars().all())


async def get_track(db: AsyncSession, track_id: str) -> Track:
    track = await db.scalar(select(Track).where(Track.id == track_id).options(_with_content()))
    if track is None:
        raise NotFound("Track not found")
    return track


def build_module(index: int, data: Dict[str, Any]) -> Module:
    module = Module(type=data["type"], content=data.get("content") or {}, order=data.get("order") or index)
    module.lessons = [
        Lesson(
            title=lesson["title"],
            subtitle=lesson.get("subtitle"),
            body=lesson.get("body") or {},
            resources=lesson.get("resources"),
            order=lesson.get("order") or i,
            estimated_mins=lesson.get("estimated_mins"),
        )
        for i, lesson in enumerate(data.get("lessons") or [])
    ]
    module.questions = [
        Question(
            stem=q["stem"],
            type=q.get("type") or "mcq",
            tags=q.get("tags") or [],
            options=q.get("options") or [],
            correct=q.get("correct"),
            weight=q.get("weight") or 1,
        )
        for q in data.get("questions") or []
    ]
    return module


async def create_track(db: AsyncSession, creator_id: str, data: Dict[str, Any]) -> Track:
    if not data.get("title") or not data.get("description") or not data.get("difficulty"):
        raise InvalidInput("Missing required fields: title, description, difficulty")

    track = Track(
        title=data["title"],
        description=data["description"],
        difficulty=data["difficulty"],
        category=data.get("category"),
        prerequisites=data.get("prerequisites"),
        creator_id=creator_id,
    )
    track.modules = [build_module(i, m) for i, m in enumerate(data.get("modules") or [])]
    db.add(track)
    await db.commit()
    logger.info(f"Track {track.id} created by {creator_id} with {len(track.modules)} modules")
    return await get_track(db, track.id)


async def delete_track(db: AsyncSession, track_id: str) -> None:
    stmt = select(Track).where(Track.id == track_id).options(
        selectinload(Track.modules).selectinload(Module.lessons),
        selectinload(Track.modules).selectinload(Module.questions),
    )
    track = await db.scalar(stmt)
    if track is None:
        raise NotFound("Track not found")
    await db.execute(delete(TrackProgress).where(TrackProgress.track_id == track_id))
    await db.delete(track)
    await db.commit()
    logger.info(f"Track {track_id} deleted")


async def list_lessons(db: AsyncSession, module_id: str) -> List[Lesson]:
    stmt = select(Lesson).where(Lesson.module_id == module_id).order_by(Lesson.order)
    return list((await db.execute(stmt)).scalars().all())


async def get_lesson(db: AsyncSession, lesson_id: str) -> Lesson:
    lesson = await db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")
    return lesson


async def create_lesson(db: AsyncSession, module_id: str, data: Dict[str, Any]) -> Lesson:
    if not data.get("title"):
        raise InvalidInput("Missing title")
    if await db.get(Module, module_id) is None:
        raise NotFound("Module not found")
    lesson = Lesson(
        module_id=module_id,
        title=data["title"],
        subtitle=data.get("subtitle"),
        body=data.get("body") or {},
        resources=data.get("resources"),
        order=data.get("order") or 0,
        estimated_mins=data.get("estimated_mins"),
    )
    db.add(lesson)
    await db.commit()
    return lesson

