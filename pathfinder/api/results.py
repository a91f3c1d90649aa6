from typing import Any, AsyncGenerator, Dict, List, Optional, Union

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.core.auth import TokenData, get_optional_user
from pathfinder.core.cache import RedisCache, get_cache
from pathfinder.core.database import get_db
from pathfinder.core.errors import InvalidInput
from pathfinder.services import feedback

router = APIRouter()


class FeedbackUser(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


class FeedbackIn(BaseModel):
    score_vector: Optional[Dict[str, Union[int, float]]] = None
    user: Optional[FeedbackUser] = None


class FeedbackOut(BaseModel):
    feedback: str
    career_path: str
    next_steps: str
    recommended_tracks: List[Dict[str, Any]]
    cached: bool


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


@router.post("/ai-feedback", response_model=FeedbackOut)
async def ai_feedback(
    payload: FeedbackIn,
    current: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    cache: RedisCache = Depends(get_cache),
):
    if payload.score_vector is None:
        raise InvalidInput("Missing score_vector")
    user_id = (payload.user.id if payload.user else None) or (current.sub if current else None)
    return await feedback.generate_feedback(db, client, cache, payload.score_vector, user_id)
