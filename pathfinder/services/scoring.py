"""
Assessment scoring, strength/weakness classification and track recommendation.

All functions are pure: the question and track corpora are passed in as
snapshots and nothing here touches the database.
"""
import json
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

STRENGTH_THRESHOLD = 70
WEAKNESS_THRESHOLD = 50
FALLBACK_TRACKS = 3


def _plain_numbers(value: Any) -> Any:
    # whole floats print without a fractional part
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [_plain_numbers(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain_numbers(v) for k, v in value.items()}
    return value


def serialize_value(value: Any) -> str:
    """Compact JSON text, the form correct answers are matched against."""
    return json.dumps(_plain_numbers(value), separators=(",", ":"), ensure_ascii=False)


def as_text(value: Any) -> str:
    """Text form of a response, following JavaScript's ``String()``.

    Lists join their items with commas (``None`` items become empty),
    objects collapse to ``[object Object]`` and booleans are lower case.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else as_text(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def is_truthy(value: Any) -> bool:
    """JavaScript truthiness: empty lists and objects count as true."""
    if isinstance(value, (list, tuple, dict)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def is_correct(correct: Any, response: Any) -> bool:
    """Substring containment of the response text in the serialized correct answer.

    A falsy correct value or a falsy response is never correct.
    """
    if not is_truthy(correct) or not is_truthy(response):
        return False
    return as_text(response) in serialize_value(correct)


def _responses_by_question(answers: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    responses: Dict[str, Any] = {}
    for a in answers:
        qid = str(a.get("question_id"))
        if qid not in responses:
            responses[qid] = a.get("response")
    return responses


def tally(questions: Sequence[Any], answers: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, int]]:
    """Per-tag {correct, total} counts for one scoring pass."""
    responses = _responses_by_question(answers)
    tag_scores: Dict[str, Dict[str, int]] = {}
    for q in questions:
        ok = is_correct(q.correct, responses.get(str(q.id)))
        for tag in q.tags or []:
            counts = tag_scores.setdefault(tag, {"correct": 0, "total": 0})
            counts["total"] += 1
            if ok:
                counts["correct"] += 1
    return tag_scores


def score(questions: Sequence[Any], answers: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Map every tag seen on the questions to a 0-100 integer percentage."""
    vector: Dict[str, int] = {}
    for tag, counts in tally(questions, answers).items():
        if counts["total"] > 0:
            vector[tag] = round_half_up(counts["correct"] / counts["total"] * 100)
    return vector


def classify(scores: Dict[str, int]) -> Tuple[List[str], List[str]]:
    strengths = [tag for tag, s in scores.items() if s >= STRENGTH_THRESHOLD]
    weaknesses = [tag for tag, s in scores.items() if s < WEAKNESS_THRESHOLD]
    return strengths, weaknesses


def matches(track: Any, skills: Sequence[str]) -> bool:
    title = (track.title or "").lower()
    desc = (track.description or "").lower()
    return any(s.lower() in title or s.lower() in desc for s in skills)


def recommend(tracks: Sequence[Any], skills: Sequence[str], limit: Optional[int]) -> List[Any]:
    """Tracks whose title or description mentions any skill.

    ``limit`` caps the matched list; ``None`` keeps every match. With no
    match the first three tracks in corpus order are returned.
    """
    matched = [t for t in tracks if matches(t, skills)]
    if not matched:
        return list(tracks[:FALLBACK_TRACKS])
    return matched if limit is None else matched[:limit]
