from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.core.auth import TokenData, require_roles
from pathfinder.core.database import get_db
from pathfinder.services import progress, tracks

router = APIRouter()

CREATOR_ROLE = "IT Professional"


class LessonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    module_id: str
    title: str
    subtitle: Optional[str] = None
    body: Any = None
    resources: Any = None
    order: int
    estimated_mins: Optional[int] = None


class ModuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    content: Any = None
    order: int
    lessons: List[LessonOut] = []


class TrackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    prerequisites: Any = None
    creator_id: Optional[str] = None
    created_at: datetime
    modules: List[ModuleOut] = []


class QuestionIn(BaseModel):
    stem: str
    type: str = "mcq"
    tags: List[str] = []
    options: Any = None
    correct: Any = None
    weight: int = 1


class LessonIn(BaseModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    body: Optional[Dict[str, Any]] = None
    resources: Any = None
    order: Optional[int] = None
    estimated_mins: Optional[int] = None


class ModuleLessonIn(LessonIn):
    title: str


class ModuleIn(BaseModel):
    type: str
    content: Optional[Dict[str, Any]] = None
    order: Optional[int] = None
    lessons: List[ModuleLessonIn] = []
    questions: List[QuestionIn] = []


class TrackCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    prerequisites: Optional[List[str]] = None
    modules: List[ModuleIn] = []


class TrackStats(BaseModel):
    enrolled_users: int
    completed_users: int
    completion_rate: int


@router.get("/tracks")
async def list_tracks(db: AsyncSession = Depends(get_db)):
    return {"tracks": [TrackOut.model_validate(t) for t in await tracks.list_tracks(db)]}


@router.post("/tracks", status_code=201)
async def create_track(payload: TrackCreate, user: TokenData = Depends(require_roles(CREATOR_ROLE)), db: AsyncSession = Depends(get_db)):
    track = await tracks.create_track(db, user.sub, payload.model_dump())
    return {"track": TrackOut.model_validate(track)}


@router.get("/tracks/{track_id}")
async def get_track(track_id: str, db: AsyncSession = Depends(get_db)):
    return {"track": TrackOut.model_validate(await tracks.get_track(db, track_id))}


@router.delete("/tracks/{track_id}", dependencies=[Depends(require_roles(CREATOR_ROLE))])
async def delete_track(track_id: str, db: AsyncSession = Depends(get_db)):
    await tracks.delete_track(db, track_id)
    return {"message": "Track deleted successfully"}


@router.get("/tracks/{track_id}/stats", response_model=TrackStats)
async def track_stats(track_id: str, db: AsyncSession = Depends(get_db)):
    return await progress.track_stats(db, track_id)


@router.get("/modules/{module_id}/lessons")
async def list_lessons(module_id: str, db: AsyncSession = Depends(get_db)):
    return {"lessons": [LessonOut.model_validate(l) for l in await tracks.list_lessons(db, module_id)]}


@router.post("/modules/{module_id}/lessons", status_code=201)
async def create_lesson(module_id: str, payload: LessonIn, db: AsyncSession = Depends(get_db)):
    lesson = await tracks.create_lesson(db, module_id, payload.model_dump())
    return {"lesson": LessonOut.model_validate(lesson)}


@router.get("/lessons/{lesson_id}")
async def get_lesson(lesson_id: str, db: AsyncSession = Depends(get_db)):
    return {"lesson": LessonOut.model_validate(await tracks.get_lesson(db, lesson_id))}
