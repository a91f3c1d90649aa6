"""
Career feedback for a score vector.

Text comes from a hosted text-generation model when an API key is configured
and the user's daily quota allows it; otherwise (or when the call fails) a
rule-based message is built from the score bands.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.core.cache import RedisCache
from pathfinder.core.config import settings
from pathfinder.services import assessments, scoring

logger = logging.getLogger(__name__)

CAREER_KEYWORDS = ("career", "path", "developer", "engineer", "analyst")
STEP_LINE = re.compile(r"^\d+\.")


@dataclass
class ScoreSummary:
    average: float
    top_skills: List[str]
    strong_skills: List[str]
    weak_skills: List[str]
    details: List[str] = field(default_factory=list)


@dataclass
class Feedback:
    feedback: str = ""
    career_path: str = ""
    next_steps: str = ""


def _label(skill: str) -> str:
    return skill.replace("_", " ")


def summarize(score_vector: Dict[str, Any]) -> ScoreSummary:
    entries = sorted(((k, float(v)) for k, v in score_vector.items()), key=lambda e: e[1], reverse=True)
    average = sum(v for _, v in entries) / len(entries) if entries else 0.0
    return ScoreSummary(
        average=average,
        top_skills=[_label(k) for k, _ in entries[:2]],
        strong_skills=[_label(k) for k, v in entries if v >= scoring.STRENGTH_THRESHOLD],
        weak_skills=[_label(k) for k, v in entries if v < scoring.WEAKNESS_THRESHOLD],
        details=[f"{_label(k)}: {v}%" for k, v in score_vector.items()],
    )


def build_prompt(summary: ScoreSummary) -> str:
    strong = f"Strong areas: {', '.join(summary.strong_skills)}." if summary.strong_skills else ""
    weak = f"Areas needing improvement: {', '.join(summary.weak_skills)}." if summary.weak_skills else ""
    return (
        "You are an IT career advisor. A student completed an IT assessment with the following scores: "
        f"{', '.join(summary.details)}. Their average score is {summary.average:.1f}%. {strong} {weak}\n\n"
        "Please provide:\n"
        "1. A personalized 2-3 sentence career insight based on their performance\n"
        "2. One specific IT career path that matches their skill profile best\n"
        "3. Three actionable next steps to advance their IT career\n\n"
        "Keep the tone encouraging and professional."
    )


def parse_generated(text: str, summary: ScoreSummary) -> Feedback:
    lines = [line for line in text.split("\n") if line.strip()]
    top = summary.top_skills[0] if summary.top_skills else "IT"
    weak = summary.weak_skills[0] if summary.weak_skills else "core IT skills"

    career_line = next((line for line in lines if any(k in line.lower() for k in CAREER_KEYWORDS)), None)
    steps = "\n".join(line for line in lines if STEP_LINE.match(line.strip()))
    return Feedback(
        feedback=" ".join(lines[:3]).strip(),
        career_path=career_line or f"Based on your skills, consider: {top} specialist roles",
        next_steps=steps or (
            f"1. Focus on strengthening {weak}\n"
            f"2. Enroll in {top}-related certification courses\n"
            "3. Build real-world projects to showcase your skills"
        ),
    )


def rule_based(summary: ScoreSummary) -> Feedback:
    top = summary.top_skills + ["IT"] * (2 - len(summary.top_skills))
    weak = summary.weak_skills

    if summary.average >= scoring.STRENGTH_THRESHOLD:
        text = (
            f"Excellent performance! You've demonstrated strong capabilities across multiple IT areas, "
            f"particularly in {' and '.join(summary.top_skills)}. Your assessment results show you're well-prepared "
            "for advanced IT career paths. Consider specializing in areas that match your top skills to maximize "
            "your career potential."
        )
        career = f"Recommended career path: Senior {top[0]} Specialist or {top[1]} Engineer"
    elif summary.average >= scoring.WEAKNESS_THRESHOLD:
        focus = (
            f"Focus on strengthening your {' and '.join(weak[:2])} skills to become more well-rounded."
            if weak else "Continue building on your strengths."
        )
        text = (
            f"Good foundation! You show promise in {' and '.join(summary.top_skills)}, which are valuable skills "
            f"in the IT industry. {focus} With focused learning, you can advance to more specialized roles."
        )
        career = f"Recommended career path: {top[0]} Developer or IT Support with {top[1]} focus"
    else:
        basics = " and ".join(weak[:2]) if weak else "core IT concepts"
        text = (
            "You're starting your IT journey! Everyone begins somewhere, and your interest in technology is the "
            f"first step. Focus on building fundamentals in {basics}. The recommended tracks below are "
            "specifically chosen to help you build a strong foundation."
        )
        career = f"Recommended career path: Start with IT Foundation courses, then specialize in {top[0]}"

    steps: List[str] = []
    if summary.strong_skills:
        steps.append(f"Leverage your strength in {summary.strong_skills[0]} by enrolling in advanced tracks")
    if weak:
        steps.append(f"Prioritize learning {weak[0]} through beginner-friendly modules")
    steps.append("Complete at least one recommended track within the next 30 days")
    steps.append("Join study groups in the community to learn from peers")
    steps.append("Schedule a one-on-one session with an IT Professional mentor")
    return Feedback(
        feedback=text,
        career_path=career,
        next_steps="\n".join(f"{i}. {s}" for i, s in enumerate(steps, start=1)),
    )


async def generate_text(client: httpx.AsyncClient, prompt: str) -> Optional[str]:
    """Call the hosted model; returns None on any failure."""
    api_key = settings.HUGGINGFACE_API_KEY.get_secret_value()
    try:
        response = await client.post(
            settings.HUGGINGFACE_MODEL_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "inputs": prompt,
                "parameters": {"max_new_tokens": 500, "temperature": 0.7, "top_p": 0.95, "return_full_text": False},
            },
            timeout=settings.AI_REQUEST_TIMEOUT,
        )
    except httpx.HTTPError as e:
        logger.error(f"Text generation request failed: {e}")
        return None
    if response.status_code != 200:
        logger.warning(f"Text generation API failed: {response.status_code}")
        return None
    try:
        result = response.json()
    except ValueError:
        logger.warning("Text generation API returned a non-JSON body")
        return None
    if isinstance(result, list):
        result = result[0] if result else {}
    return result.get("generated_text") if isinstance(result, dict) else None


def _cached_response(assessment, score_vector: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if assessment is None or not assessment.ai_feedback:
        return None
    if assessment.score_vector != score_vector:
        return None
    return {
        "feedback": assessment.ai_feedback,
        "career_path": assessment.ai_career_path or "",
        "next_steps": assessment.ai_next_steps or "",
        "recommended_tracks": assessment.recommended_tracks or [],
        "cached": True,
    }


async def generate_feedback(
    db: AsyncSession,
    client: httpx.AsyncClient,
    cache: RedisCache,
    score_vector: Dict[str, Any],
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    latest = await assessments.find_latest(db, user_id) if user_id else None
    cached = _cached_response(latest, score_vector)
    if cached is not None:
        logger.info(f"Returning cached feedback for user {user_id}")
        return cached

    summary = summarize(score_vector)
    tracks = await assessments.load_tracks(db)
    recommended = [t.summary() for t in scoring.recommend(tracks, summary.top_skills, limit=None)]

    result: Optional[Feedback] = None
    if settings.HUGGINGFACE_API_KEY and (user_id is None or await cache.can_generate(user_id)):
        text = await generate_text(client, build_prompt(summary))
        if user_id:
            await cache.bump_generation(user_id)
        if text:
            result = parse_generated(text, summary)
    if result is None or not result.feedback:
        result = rule_based(summary)

    if latest is not None:
        try:
            await assessments.update_recommended_tracks(db, latest.id, recommended, commit=False)
            await assessments.store_feedback(db, latest.id, result.feedback, result.career_path, result.next_steps, commit=False)
            await db.commit()
            logger.info(f"Saved feedback on assessment {latest.id}")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error saving feedback for user {user_id}: {e}")

    return {
        "feedback": result.feedback,
        "career_path": result.career_path,
        "next_steps": result.next_steps,
        "recommended_tracks": recommended,
        "cached": False,
    }
