"""Data models: questions, attempt state, session snapshots and results."""

import time
from typing import Optional, List, Dict

DEFAULT_TIME_LIMIT = 30
DEFAULT_MINIMUM_SCORE_PERCENTAGE = 70.0

# Recorded in place of a selected option when a question times out.
NO_ANSWER = ""


def _positive_time_limit(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return DEFAULT_TIME_LIMIT
    return value


class Question:
    """A multiple-choice question, immutable once loaded into an attempt."""

    __slots__ = ("id", "prompt", "options", "correct_answer", "time_limit_seconds",
                 "explanation", "category", "difficulty")

    def __init__(self, id: str, prompt: str, options: List[str], correct_answer: Optional[str],
                 time_limit_seconds: int = DEFAULT_TIME_LIMIT, explanation: Optional[str] = None,
                 category: Optional[str] = None, difficulty: Optional[str] = None):
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "prompt", prompt)
        object.__setattr__(self, "options", tuple(options) if options is not None else None)
        object.__setattr__(self, "correct_answer", correct_answer)
        object.__setattr__(self, "time_limit_seconds", _positive_time_limit(time_limit_seconds))
        object.__setattr__(self, "explanation", explanation)
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "difficulty", difficulty)

    def __setattr__(self, name, value):
        raise AttributeError(f"Question is immutable; cannot set '{name}'")

    def __eq__(self, other):
        if not isinstance(other, Question):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Question(id={self.id!r}, prompt={self.prompt!r})"

    def is_correct(self, selected: str) -> bool:
        return selected == self.correct_answer

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.prompt,
            "options": list(self.options) if self.options is not None else None,
            "correctAnswer": self.correct_answer,
            "timeLimit": self.time_limit_seconds,
            "explanation": self.explanation,
            "category": self.category,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=data.get("id"),
            prompt=data.get("question"),
            options=data.get("options"),
            correct_answer=data.get("correctAnswer"),
            time_limit_seconds=data.get("timeLimit"),
            explanation=data.get("explanation"),
            category=data.get("category"),
            difficulty=data.get("difficulty"),
        )


class AttemptState:
    """Mutable progress of one attempt, owned by a single state machine."""

    def __init__(self, current_index: int = 0, score: int = 0,
                 answers: Optional[Dict[str, str]] = None,
                 time_remaining_seconds: int = 0, is_complete: bool = False):
        self.current_index = current_index
        self.score = score
        self.answers: Dict[str, str] = dict(answers) if answers else {}
        self.time_remaining_seconds = time_remaining_seconds
        self.is_complete = is_complete

    @classmethod
    def initial(cls, questions: List[Question]) -> "AttemptState":
        return cls(time_remaining_seconds=questions[0].time_limit_seconds if questions else 0)

    def copy(self) -> "AttemptState":
        return AttemptState(self.current_index, self.score, self.answers,
                            self.time_remaining_seconds, self.is_complete)

    def __eq__(self, other):
        if not isinstance(other, AttemptState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"AttemptState(current_index={self.current_index}, score={self.score}, "
                f"answers={len(self.answers)}, time_remaining={self.time_remaining_seconds}, "
                f"is_complete={self.is_complete})")

    def to_dict(self) -> dict:
        return {
            "currentQuestion": self.current_index,
            "score": self.score,
            "answers": dict(self.answers),
            "timeRemaining": self.time_remaining_seconds,
            "isComplete": self.is_complete,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttemptState":
        answers = data.get("answers") or {}
        return cls(
            current_index=int(data.get("currentQuestion", 0)),
            score=int(data.get("score", 0)),
            answers={str(k): str(v) for k, v in answers.items()},
            time_remaining_seconds=int(data.get("timeRemaining", 0)),
            is_complete=bool(data.get("isComplete", False)),
        )

    def is_consistent_with(self, total: int) -> bool:
        """Check the attempt invariants against a question count."""
        if not 0 <= self.current_index <= total:
            return False
        if not 0 <= self.score <= len(self.answers) <= total:
            return False
        if self.is_complete:
            return len(self.answers) == total and self.current_index == total
        return len(self.answers) == self.current_index and self.time_remaining_seconds >= 0


class SessionSnapshot:
    """Persisted (order, state) pair that lets an attempt survive a reload."""

    def __init__(self, shuffled_order: List[str], attempt_state: Optional[AttemptState] = None,
                 saved_at: Optional[float] = None):
        self.shuffled_order = list(shuffled_order)
        self.attempt_state = attempt_state
        self.saved_at = saved_at if saved_at is not None else time.time()

    def to_dict(self) -> dict:
        return {
            "shuffledOrder": list(self.shuffled_order),
            "quizState": self.attempt_state.to_dict() if self.attempt_state else None,
            "savedAt": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionSnapshot":
        order = data.get("shuffledOrder")
        if not isinstance(order, list):
            raise ValueError("snapshot has no shuffledOrder list")
        state = data.get("quizState")
        return cls(
            shuffled_order=[str(qid) for qid in order],
            attempt_state=AttemptState.from_dict(state) if state else None,
            saved_at=data.get("savedAt"),
        )


class QuizResult:
    """Final outcome of a completed attempt."""

    def __init__(self, score: int, total: int, answers: Dict[str, str],
                 minimum_score_percentage: float = DEFAULT_MINIMUM_SCORE_PERCENTAGE):
        self.score = score
        self.total = total
        self.answers = dict(answers)
        self.minimum_score_percentage = minimum_score_percentage

    @property
    def percentage_score(self) -> float:
        return (self.score / self.total * 100) if self.total > 0 else 0.0

    @property
    def passed(self) -> bool:
        return self.percentage_score >= self.minimum_score_percentage

    def answers_list(self) -> List[dict]:
        return [{"questionId": qid, "answer": answer} for qid, answer in self.answers.items()]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "total": self.total,
            "answers": self.answers_list(),
            "percentageScore": self.percentage_score,
            "passed": self.passed,
        }
