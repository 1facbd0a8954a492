"""Timer/Progression State Machine: sequences questions and accumulates score."""

import logging
from enum import Enum
from typing import Optional, Callable, List, NamedTuple

from quiz_session.models import AttemptState, Question, NO_ANSWER

logger = logging.getLogger(__name__)


class Phase(Enum):
    AWAITING_TERMS = "awaiting_terms"
    RUNNING = "running"
    COMPLETE = "complete"
    # Inert phases: the attempt never starts.
    NO_QUESTIONS = "no_questions"
    UNAUTHENTICATED = "unauthenticated"


class AcceptTermsEvent(NamedTuple):
    pass


class AnswerEvent(NamedTuple):
    selected: str
    question_index: Optional[int] = None


class TickEvent(NamedTuple):
    question_index: Optional[int] = None


class QuizStateMachine:
    """
    Drives one attempt through AwaitingTerms -> Running -> Complete.

    All mutation goes through dispatch(). Answer and tick events may carry the
    question index they were raised for; an event whose index no longer matches
    the current question is stale and ignored, so a tick racing an answer can
    never skip a question.
    """

    def __init__(self, questions: List[Question], state: Optional[AttemptState] = None,
                 on_change: Optional[Callable[[AttemptState], None]] = None,
                 on_complete: Optional[Callable[[AttemptState], None]] = None):
        self.questions = list(questions)
        self._on_change = on_change
        self._on_complete = on_complete
        self._completion_notified = False

        if not self.questions:
            self.phase = Phase.NO_QUESTIONS
            self.state = AttemptState(is_complete=True)
            return

        self.phase = Phase.AWAITING_TERMS
        if state is not None and self._can_restore(state):
            self.state = state.copy()
            logger.info(f"Restored attempt at question {self.state.current_index + 1}")
        else:
            if state is not None:
                logger.warning(f"Ignoring inconsistent saved attempt state: {state!r}")
            self.state = AttemptState.initial(self.questions)

    def _can_restore(self, state: AttemptState) -> bool:
        """A saved state must have answered exactly the questions before its index."""
        if not state.is_consistent_with(self.total):
            return False
        answered = self.questions[:state.current_index]
        if set(state.answers) != {q.id for q in answered}:
            return False
        correct = sum(1 for q in answered if q.is_correct(state.answers[q.id]))
        return state.score == correct

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase != Phase.RUNNING:
            return None
        return self.questions[self.state.current_index]

    def snapshot(self) -> AttemptState:
        """Return a copy of the attempt state that callers may keep."""
        return self.state.copy()

    def dispatch(self, event) -> bool:
        """Apply one event. Returns True if the attempt state changed."""
        if isinstance(event, AcceptTermsEvent):
            return self._accept_terms()
        if isinstance(event, AnswerEvent):
            return self._answer(event)
        if isinstance(event, TickEvent):
            return self._tick(event)
        raise TypeError(f"Unknown event: {event!r}")

    def accept_terms(self) -> bool:
        return self.dispatch(AcceptTermsEvent())

    def handle_answer(self, selected: str, question_index: Optional[int] = None) -> bool:
        return self.dispatch(AnswerEvent(selected, question_index))

    def tick(self, question_index: Optional[int] = None) -> bool:
        return self.dispatch(TickEvent(question_index))

    def _accept_terms(self) -> bool:
        if self.phase != Phase.AWAITING_TERMS:
            return False
        if self.state.is_complete:
            # Resumed an attempt that had already finished.
            self._enter_complete()
            return True
        self.phase = Phase.RUNNING
        logger.info(f"Attempt running with {self.total} questions")
        self._notify_change()
        return True

    def _is_stale(self, question_index: Optional[int]) -> bool:
        if self.phase != Phase.RUNNING or self.state.is_complete:
            return True
        return question_index is not None and question_index != self.state.current_index

    def _answer(self, event: AnswerEvent) -> bool:
        if self._is_stale(event.question_index):
            logger.debug(f"Ignoring stale answer event: {event!r}")
            return False
        question = self.questions[self.state.current_index]
        if question.is_correct(event.selected):
            self.state.score += 1
        self._record_and_advance(question, event.selected)
        return True

    def _tick(self, event: TickEvent) -> bool:
        if self._is_stale(event.question_index):
            return False
        if self.state.time_remaining_seconds > 0:
            self.state.time_remaining_seconds -= 1
        if self.state.time_remaining_seconds > 0:
            self._notify_change()
            return True

        question = self.questions[self.state.current_index]
        logger.info(f"Question {question.id} timed out")
        self._record_and_advance(question, NO_ANSWER)
        return True

    def _record_and_advance(self, question: Question, selected: str):
        self.state.answers[question.id] = selected
        next_index = self.state.current_index + 1
        self.state.current_index = next_index
        if next_index < self.total:
            self.state.time_remaining_seconds = self.questions[next_index].time_limit_seconds
            self._notify_change()
        else:
            self.state.time_remaining_seconds = 0
            self.state.is_complete = True
            self._enter_complete()

    def _enter_complete(self):
        self.phase = Phase.COMPLETE
        logger.info(f"Attempt complete: score {self.state.score}/{self.total}")
        self._notify_change()
        if not self._completion_notified:
            self._completion_notified = True
            if self._on_complete:
                self._on_complete(self.snapshot())

    def _notify_change(self):
        if self._on_change:
            self._on_change(self.snapshot())
