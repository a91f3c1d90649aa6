import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathfinder.core.errors import NotFound
from pathfinder.models.orm import Track, TrackProgress
from pathfinder.services.scoring import round_half_up

logger = logging.getLogger(__name__)


def percent(done: int, total: int) -> int:
    return round_half_up(done / total * 100) if total > 0 else 0


async def find_progress(db: AsyncSession, user_id: str, track_id: str) -> Optional[TrackProgress]:
    stmt = select(TrackProgress).where(TrackProgress.user_id == user_id, TrackProgress.track_id == track_id)
    return await db.scalar(stmt)


async def get_progress(db: AsyncSession, user_id: str, track_id: str) -> TrackProgress:
    progress = await find_progress(db, user_id, track_id)
    if progress is None:
        raise NotFound("No progress found")
    return progress


async def _require_track(db: AsyncSession, track_id: str) -> Track:
    track = await db.scalar(select(Track).where(Track.id == track_id).options(selectinload(Track.modules)))
    if track is None:
        raise NotFound("Track not found")
    return track


async def save_progress(
    db: AsyncSession,
    user_id: str,
    track_id: str,
    completed_modules: Optional[List[str]] = None,
    completed_games: Optional[List[str]] = None,
    achievements: Any = None,
) -> TrackProgress:
    await _require_track(db, track_id)
    progress = await find_progress(db, user_id, track_id)
    if progress is None:
        progress = TrackProgress(
            user_id=user_id,
            track_id=track_id,
            completed_modules=completed_modules or [],
            completed_games=completed_games or [],
            achievements=achievements,
        )
        db.add(progress)
    else:
        if completed_modules is not None:
            progress.completed_modules = completed_modules
        if completed_games is not None:
            progress.completed_games = completed_games
        if achievements is not None:
            progress.achievements = achievements
    await db.commit()
    await db.refresh(progress)
    logger.info(f"Saved progress for user {user_id} on track {track_id}")
    return progress


async def _mark(db: AsyncSession, user_id: str, track_id: str, field: str, item_id: str) -> TrackProgress:
    progress = await find_progress(db, user_id, track_id)
    if progress is None:
        progress = TrackProgress(user_id=user_id, track_id=track_id, completed_modules=[], completed_games=[])
        db.add(progress)
    done = list(getattr(progress, field) or [])
    if item_id not in done:
        done.append(item_id)
    setattr(progress, field, done)
    await db.commit()
    await db.refresh(progress)
    return progress


async def complete_module(db: AsyncSession, user_id: str, track_id: str, module_id: str) -> Dict[str, Any]:
    track = await _require_track(db, track_id)
    progress = await _mark(db, user_id, track_id, "completed_modules", module_id)
    return {"progress": progress, "percent": percent(len(progress.completed_modules), len(track.modules))}


async def complete_game(db: AsyncSession, user_id: str, track_id: str, game_id: str) -> TrackProgress:
    await _require_track(db, track_id)
    return await _mark(db, user_id, track_id, "completed_games", game_id)


async def progress_summary(db: AsyncSession, user_id: str) -> Dict[str, int]:
    rows = (await db.execute(select(TrackProgress).where(TrackProgress.user_id == user_id))).scalars().all()
    by_track = {p.track_id: p for p in rows}
    tracks = (await db.execute(select(Track).options(selectinload(Track.modules)))).scalars().all()

    completed_tracks = 0
    completed_modules = 0
    for track in tracks:
        p = by_track.get(track.id)
        if p is None:
            continue
        done = len(p.completed_modules or [])
        if percent(done, len(track.modules)) == 100:
            completed_tracks += 1
        completed_modules += done
    return {"completed_tracks": completed_tracks, "completed_modules": completed_modules}


async def track_stats(db: AsyncSession, track_id: str) -> Dict[str, int]:
    await _require_track(db, track_id)
    rows = (await db.execute(select(TrackProgress).where(TrackProgress.track_id == track_id))).scalars().all()
    enrolled = len(rows)
    completed = sum(1 for p in rows if p.completed_modules or p.completed_games)
    return {
        "enrolled_users": enrolled,
        "completed_users": completed,
        "completion_rate": percent(completed, enrolled),
    }

