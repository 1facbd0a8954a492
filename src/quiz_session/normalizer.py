"""Normalizer: maps loosely shaped backend question JSON onto Question."""

import logging
from typing import List

from quiz_session.models import Question, DEFAULT_TIME_LIMIT

logger = logging.getLogger(__name__)


def _normalize_options(raw_options) -> List[str]:
    if isinstance(raw_options, (list, tuple)):
        return [str(opt) for opt in raw_options]
    if isinstance(raw_options, dict):
        return [str(opt) for opt in raw_options.values()]
    return []


def _normalize_time_limit(raw, default: int) -> int:
    for key in ("timeLimit", "time_limit", "timeLimitSeconds"):
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
    return default


def _optional_str(value):
    return value if isinstance(value, str) else None


def normalize_question(raw: dict, default_time_limit: int = DEFAULT_TIME_LIMIT) -> Question:
    """Build a Question from one backend record without validating it."""
    raw_id = raw.get("id", raw.get("_id"))
    if raw_id is None or raw_id == "":
        logger.warning(f"Question missing ID: {raw}")

    correct = raw.get("correctAnswer")
    if correct is None:
        correct = raw.get("correct_answer")

    return Question(
        id=str(raw_id) if raw_id not in (None, "") else "",
        prompt=raw.get("question") or raw.get("question_text") or "",
        options=_normalize_options(raw.get("options")),
        correct_answer=str(correct) if correct is not None else None,
        time_limit_seconds=_normalize_time_limit(raw, default_time_limit),
        explanation=_optional_str(raw.get("explanation")),
        category=_optional_str(raw.get("category")),
        difficulty=_optional_str(raw.get("difficulty")),
    )


def normalize_questions(raw_questions, default_time_limit: int = DEFAULT_TIME_LIMIT) -> List[Question]:
    """Normalize a list of backend question records, skipping non-mappings."""
    if not isinstance(raw_questions, list):
        logger.warning(f"Expected list of questions, received: {type(raw_questions).__name__}")
        return []

    questions = []
    for raw in raw_questions:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed question record: {raw!r}")
            continue
        questions.append(normalize_question(raw, default_time_limit))
    logger.debug(f"Normalized {len(questions)} of {len(raw_questions)} questions")
    return questions
