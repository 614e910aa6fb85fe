"""
Reconciles free-form oracle output into plain text or a structured evaluation.

Every function here is total: malformed input degrades to a cleaned string
or to the fallback evaluation, never to an exception.
"""

import json
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

CONFIDENCE_LEVELS = ("high", "medium", "low")

FALLBACK_FEEDBACK = "Unable to evaluate answer. Please try again."
FALLBACK_SUGGESTIONS = "Make sure your answer is clear and addresses the question directly."

# Applied in order; see clean_ai_response.
_CLEANING_STEPS = (
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),    # headers
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),             # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),                 # italic
    (re.compile(r"```.*?```", re.DOTALL), ""),         # fenced code blocks
    (re.compile(r"`(.*?)`"), r"\1"),                   # inline code
    (re.compile(r"\n\s*\n"), "\n\n"),                  # blank-line runs
)

_JSON_SPAN_RE = re.compile(r"\{.*\}", re.DOTALL)


class AnswerEvaluation(BaseModel):
    """Evaluation of a student's answer, always fully populated."""
    model_config = ConfigDict(populate_by_name=True)

    is_correct: bool = Field(alias="isCorrect")
    confidence: str
    feedback: str
    suggestions: str


def fallback_evaluation() -> AnswerEvaluation:
    """The evaluation returned whenever the oracle reply cannot be used."""
    return AnswerEvaluation(
        is_correct=False,
        confidence="low",
        feedback=FALLBACK_FEEDBACK,
        suggestions=FALLBACK_SUGGESTIONS,
    )


def _clean_once(text: str) -> str:
    for pattern, replacement in _CLEANING_STEPS:
        text = pattern.sub(replacement, text)
    return text.strip()


def clean_ai_response(text: Optional[str]) -> str:
    """
    Strip markdown decoration from oracle text.

    The pipeline is re-run until the text stops changing. Each pass that
    changes anything makes the text shorter, so this terminates, and the
    result is a fixed point: clean(clean(x)) == clean(x).
    """
    if not text:
        return ""

    cleaned = _clean_once(text)
    while cleaned != text:
        text = cleaned
        cleaned = _clean_once(text)
    return cleaned


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Best-effort extraction of the first-to-last brace span as a JSON object."""
    if not text:
        return None

    match = _JSON_SPAN_RE.search(text)
    if not match:
        return None

    try:
        value = json.loads(match.group(0))
    except (json.JSONDecodeError, RecursionError):
        return None

    return value if isinstance(value, dict) else None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "correct")
    return bool(value)


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return clean_ai_response(value if isinstance(value, str) else str(value))


def reconcile_evaluation(text: Optional[str]) -> AnswerEvaluation:
    """Turn raw oracle output into an AnswerEvaluation, falling back when unusable."""
    data = extract_json_object(text)
    if data is None or "isCorrect" not in data:
        logger.warning(
            "Oracle evaluation could not be parsed, using fallback",
            extra={"action": "check_answer", "response_preview": (text or "")[:120]},
        )
        return fallback_evaluation()

    confidence = str(data.get("confidence", "low")).strip().lower()
    if confidence not in CONFIDENCE_LEVELS:
        confidence = "low"

    return AnswerEvaluation(
        is_correct=_coerce_bool(data["isCorrect"]),
        confidence=confidence,
        feedback=_coerce_text(data.get("feedback")),
        suggestions=_coerce_text(data.get("suggestions")),
    )
