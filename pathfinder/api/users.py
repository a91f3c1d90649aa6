from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.core.auth import TokenData, get_current_user, require_self
from pathfinder.core.database import get_db
from pathfinder.models.orm import User
from pathfinder.services import progress

router = APIRouter()


class PublicUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    bio: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    track_id: str
    completed_modules: List[str]
    completed_games: List[str]
    achievements: Any = None


class ProgressIn(BaseModel):
    completed_modules: Optional[List[str]] = None
    completed_games: Optional[List[str]] = None
    achievements: Any = None


class ProgressSummary(BaseModel):
    completed_tracks: int
    completed_modules: int


@router.get("")
async def list_users(db: AsyncSession = Depends(get_db)):
    users = (await db.execute(select(User).order_by(User.created_at))).scalars().all()
    return {"users": [PublicUser.model_validate(u) for u in users]}


@router.get("/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return {"user": PublicUser.model_validate(user)}


@router.get("/{user_id}/progress-summary", response_model=ProgressSummary)
async def progress_summary(user_id: str, db: AsyncSession = Depends(get_db)):
    return await progress.progress_summary(db, user_id)


@router.get("/{user_id}/track-progress/{track_id}")
async def get_track_progress(user_id: str, track_id: str, db: AsyncSession = Depends(get_db)):
    return {"progress": ProgressOut.model_validate(await progress.get_progress(db, user_id, track_id))}


@router.put("/{user_id}/track-progress/{track_id}")
async def save_track_progress(
    user_id: str,
    track_id: str,
    payload: ProgressIn,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_self(user_id, user)
    saved = await progress.save_progress(
        db, user_id, track_id, payload.completed_modules, payload.completed_games, payload.achievements
    )
    return {"progress": ProgressOut.model_validate(saved)}


@router.post("/{user_id}/track-progress/{track_id}/module/{module_id}/complete")
async def complete_module(
    user_id: str, track_id: str, module_id: str,
    user: TokenData = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    require_self(user_id, user)
    result = await progress.complete_module(db, user_id, track_id, module_id)
    return {"progress": ProgressOut.model_validate(result["progress"]), "percent": result["percent"]}


@router.post("/{user_id}/track-progress/{track_id}/game/{game_id}/complete")
async def complete_game(
    user_id: str, track_id: str, game_id: str,
    user: TokenData = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    require_self(user_id, user)
    return {"progress": ProgressOut.model_validate(await progress.complete_game(db, user_id, track_id, game_id))}
