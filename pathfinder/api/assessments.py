from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.api.tracks import TrackOut
from pathfinder.core.database import get_db
from pathfinder.services import assessments

router = APIRouter()


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stem: str
    type: str
    tags: List[str]
    options: Any
    weight: int


class AnswerIn(BaseModel):
    question_id: Union[str, int]
    response: Any = None


class SubmitIn(BaseModel):
    user_id: Optional[str] = None
    answers: Optional[List[AnswerIn]] = None


class AssessmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    raw_answers: List[Dict[str, Any]]
    score_vector: Dict[str, int]
    recommended_tracks: List[Dict[str, Any]]
    ai_feedback: Optional[str] = None
    ai_career_path: Optional[str] = None
    ai_next_steps: Optional[str] = None
    created_at: datetime


class SubmitOut(BaseModel):
    assessment: AssessmentOut
    strengths: List[str]
    weaknesses: List[str]
    recommended_tracks: List[Dict[str, Any]]


@router.get("/assessments/start")
async def start_assessment(db: AsyncSession = Depends(get_db)):
    questions = await assessments.load_questions(db)
    return {"questions": [QuestionOut.model_validate(q) for q in questions]}


@router.post("/assessments/submit", response_model=SubmitOut)
async def submit_assessment(payload: SubmitIn, db: AsyncSession = Depends(get_db)):
    answers = [a.model_dump() for a in payload.answers] if payload.answers is not None else None
    result = await assessments.submit_assessment(db, payload.user_id, answers)
    return SubmitOut(
        assessment=AssessmentOut.model_validate(result["assessment"]),
        strengths=result["strengths"],
        weaknesses=result["weaknesses"],
        recommended_tracks=result["recommended_tracks"],
    )


@router.get("/assessments/latest/{user_id}")
async def latest_assessment(user_id: str, db: AsyncSession = Depends(get_db)):
    assessment = await assessments.get_latest_assessment(db, user_id)
    return {"assessment": AssessmentOut.model_validate(assessment)}


@router.get("/courses/recommend/{user_id}")
async def recommend_courses(user_id: str, db: AsyncSession = Depends(get_db)):
    tracks = await assessments.recommended_courses(db, user_id)
    return {"recommended": [TrackOut.model_validate(t) for t in tracks]}
