"""Quiz Session Engine: runs one timed quiz attempt from terms to outcome."""

import functools
import logging
import threading
from typing import Optional, Callable, List

from quiz_session.auth import UserContext
from quiz_session.models import (
    AttemptState, Question, QuizResult, SessionSnapshot, DEFAULT_MINIMUM_SCORE_PERCENTAGE,
)
from quiz_session.shuffler import QuestionShuffler
from quiz_session.state_machine import QuizStateMachine, Phase
from quiz_session.ticker import Ticker

logger = logging.getLogger(__name__)

LEADERBOARD_ROUTE = "/leaderboard"


class QuizView:
    """Renderable view of the engine at one moment."""

    def __init__(self, phase: Phase, current_question: Optional[Question] = None,
                 question_number: Optional[int] = None, total: int = 0,
                 time_remaining: Optional[int] = None, final_score: Optional[int] = None,
                 result: Optional[QuizResult] = None, submission_error: Optional[str] = None,
                 submitting: bool = False, load_error: Optional[str] = None,
                 is_qualification_round: bool = False,
                 minimum_score_percentage: float = DEFAULT_MINIMUM_SCORE_PERCENTAGE):
        self.phase = phase
        self.current_question = current_question
        self.question_number = question_number
        self.total = total
        self.time_remaining = time_remaining
        self.final_score = final_score
        self.result = result
        self.submission_error = submission_error
        self.submitting = submitting
        self.load_error = load_error
        self.is_qualification_round = is_qualification_round
        self.minimum_score_percentage = minimum_score_percentage

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "currentQuestion": self.current_question.to_dict() if self.current_question else None,
            "questionNumber": self.question_number,
            "total": self.total,
            "timeRemaining": self.time_remaining,
            "finalScore": self.final_score,
            "result": self.result.to_dict() if self.result else None,
            "submissionError": self.submission_error,
            "submitting": self.submitting,
            "loadError": self.load_error,
        }


class QuizSessionEngine:
    """
    Composes the shuffler, session store and state machine for one attempt.

    Answers and ticks are serialized by a lock, so the background ticker and a
    UI thread can both feed events. The clock is re-armed for every question and
    its ticks carry the question index they were armed for, so a tick that lands
    after an answer is dropped as stale.

    Entering Complete only records the result under the lock. The submitter then
    runs once on a worker thread and `on_complete` fires, both outside the lock,
    so rendering never waits on the network. The session store is cleared only
    after a successful submission or when the caller acknowledges the outcome.
    """

    def __init__(
        self,
        questions: List[Question],
        on_complete: Optional[Callable[[int], None]],
        user_context: Optional[UserContext],
        session_store=None,
        submitter=None,
        navigator: Optional[Callable[[str], None]] = None,
        rng_seed: Optional[int] = None,
        minimum_score_percentage: float = DEFAULT_MINIMUM_SCORE_PERCENTAGE,
        is_qualification_round: bool = False,
        tick_interval: float = 1.0,
        attempt_id: Optional[str] = None,
        load_error: Optional[str] = None,
    ):
        self.questions = list(questions or [])
        self.on_complete = on_complete
        self.user_context = user_context or UserContext.anonymous()
        self.session_store = session_store
        self.submitter = submitter
        self.navigator = navigator
        self.minimum_score_percentage = minimum_score_percentage
        self.is_qualification_round = is_qualification_round
        self.tick_interval = tick_interval
        self.attempt_id = attempt_id
        self.load_error = load_error

        self._shuffler = QuestionShuffler(rng_seed=rng_seed, session_store=session_store)
        self._lock = threading.RLock()
        self._ticker: Optional[Ticker] = None
        self._clock_running = False
        self._clock_index: Optional[int] = None
        self._machine: Optional[QuizStateMachine] = None
        self._order: List[str] = []
        self._generation = 0
        self._completion_pending = False
        self._submit_thread: Optional[threading.Thread] = None
        self.result: Optional[QuizResult] = None
        self.submitting = False
        self.submitted = False
        self.submission_error: Optional[str] = None

        self._build_attempt()

    @classmethod
    def for_qualification(cls, api_client, on_complete, user_context: UserContext, **kwargs):
        """Fetch qualification questions from the backend and build an engine for them."""
        from quiz_session.api_client import ApiError

        questions: List[Question] = []
        attempt_id = None
        load_error = None
        try:
            questions, attempt_id = api_client.start_qualification()
        except ApiError as e:
            logger.error(f"Failed to load qualification questions: {e.message}")
            load_error = "Failed to load qualification questions. Please try again later."

        kwargs.setdefault("submitter", api_client)
        return cls(questions, on_complete, user_context, is_qualification_round=True,
                   attempt_id=attempt_id, load_error=load_error, **kwargs)

    def _build_attempt(self):
        if not self.user_context.is_authenticated():
            logger.warning("No authenticated user; quiz stays inert.")
            self._machine = None
            return

        resumed = self.session_store.load() if self.session_store else None
        ordered, self._order = self._shuffler.shuffle(self.questions, resumed)

        state = None
        if resumed is not None and resumed.attempt_state is not None \
                and resumed.shuffled_order == self._order:
            state = resumed.attempt_state

        self._machine = QuizStateMachine(
            ordered, state=state, on_change=self._persist, on_complete=self._handle_complete,
        )
        if self._machine.phase == Phase.NO_QUESTIONS:
            logger.warning("No valid questions available for this quiz.")

    @property
    def phase(self) -> Phase:
        if self._machine is None:
            return Phase.UNAUTHENTICATED
        return self._machine.phase

    @property
    def order(self) -> List[str]:
        return list(self._order)

    def attempt_state(self) -> Optional[AttemptState]:
        with self._lock:
            return self._machine.snapshot() if self._machine else None

    def view_state(self) -> QuizView:
        """Current renderable state. Has no side effects and may be called freely."""
        with self._lock:
            phase = self.phase
            view = QuizView(
                phase,
                total=self._machine.total if self._machine else 0,
                submission_error=self.submission_error,
                submitting=self.submitting,
                load_error=self.load_error,
                is_qualification_round=self.is_qualification_round,
                minimum_score_percentage=self.minimum_score_percentage,
            )
            if phase == Phase.RUNNING:
                state = self._machine.state
                view.current_question = self._machine.current_question
                view.question_number = state.current_index + 1
                view.time_remaining = state.time_remaining_seconds
            elif phase == Phase.COMPLETE:
                view.final_score = self._machine.state.score
                view.result = self.result
            return view

    def accept_terms(self) -> bool:
        with self._lock:
            if self._machine is None:
                return False
            changed = self._machine.accept_terms()
        self._finish_if_complete()
        return changed

    def decline_terms(self):
        """Abandon the attempt before it starts and go to the leaderboard."""
        with self._lock:
            if self.phase != Phase.AWAITING_TERMS:
                return
            if self.session_store:
                self.session_store.clear()
            logger.info("Quiz terms declined")
        self._navigate(LEADERBOARD_ROUTE)

    def answer(self, selected: str, question_index: Optional[int] = None) -> bool:
        with self._lock:
            if self._machine is None:
                return False
            changed = self._machine.handle_answer(selected, question_index)
        self._finish_if_complete()
        return changed

    def tick(self, question_index: Optional[int] = None) -> bool:
        with self._lock:
            if self._machine is None:
                return False
            changed = self._machine.tick(question_index)
        self._finish_if_complete()
        return changed

    def start_clock(self):
        """Start the background countdown; ticks stop by themselves on completion."""
        with self._lock:
            if self.phase != Phase.RUNNING:
                return
            self._clock_running = True
            self._arm_clock()

    def stop_clock(self):
        with self._lock:
            self._clock_running = False
            ticker, self._ticker = self._ticker, None
            self._clock_index = None
        if ticker is not None:
            ticker.stop()

    def close(self):
        """Tear down: no state is mutated by the clock after this returns."""
        self.stop_clock()

    def wait_for_submission(self, timeout: Optional[float] = None) -> bool:
        """Block until a running submission finishes. Returns False on timeout."""
        thread = self._submit_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def retry_submission(self) -> bool:
        """Submit again after a failed submission. Returns True on success."""
        with self._lock:
            if self.phase != Phase.COMPLETE or self.result is None \
                    or self.submitted or self.submitting or self.submitter is None:
                return False
            self.submitting = True
            result, generation = self.result, self._generation
        return self._run_submission(result, generation)

    def acknowledge_outcome(self):
        """The user has seen the result: drop the saved attempt and leave."""
        with self._lock:
            if self.phase != Phase.COMPLETE:
                return
            if self.session_store:
                self.session_store.clear()
        self._navigate(LEADERBOARD_ROUTE)

    def restart(self):
        """Discard the current attempt and begin again from the terms prompt."""
        self.close()
        with self._lock:
            if self.session_store:
                self.session_store.clear()
            self._generation += 1
            self._completion_pending = False
            self.result = None
            self.submitting = False
            self.submitted = False
            self.submission_error = None
            self._build_attempt()
            logger.info("Quiz restarted")

    def _arm_clock(self):
        """Give the current question a fresh ticker bound to its index."""
        if self._ticker is not None:
            self._ticker.stop(wait=False)
        index = self._machine.state.current_index
        self._clock_index = index
        self._ticker = Ticker(functools.partial(self.tick, index), interval=self.tick_interval)
        self._ticker.start()

    def _persist(self, state: AttemptState):
        if self.session_store:
            self.session_store.save(SessionSnapshot(self._order, state))
        if self._clock_running and not state.is_complete and state.current_index != self._clock_index:
            self._arm_clock()

    def _handle_complete(self, state: AttemptState):
        # Runs under the lock: record the outcome only.
        self._clock_running = False
        if self._ticker is not None:
            self._ticker.stop(wait=False)
        self.result = QuizResult(
            score=state.score,
            total=self._machine.total,
            answers=state.answers,
            minimum_score_percentage=self.minimum_score_percentage,
        )
        self._completion_pending = True

    def _finish_if_complete(self):
        with self._lock:
            if not self._completion_pending:
                return
            self._completion_pending = False
            result = self.result
        self.stop_clock()
        self._start_submission()
        if self.on_complete:
            self.on_complete(result.score)

    def _start_submission(self):
        with self._lock:
            if self.submitter is None or self.submitted or self.submitting or self.result is None:
                return
            self.submitting = True
            result, generation = self.result, self._generation
        self._submit_thread = threading.Thread(
            target=self._run_submission, args=(result, generation),
            name="quiz-submit", daemon=True,
        )
        self._submit_thread.start()

    def _run_submission(self, result: QuizResult, generation: int) -> bool:
        error = None
        try:
            self.submitter.submit(result.score, result.answers_list())
        except Exception as e:
            error = getattr(e, "message", None) or str(e) or "Failed to submit quiz results"
            logger.warning(f"Submitting quiz results failed: {error}")

        with self._lock:
            if generation != self._generation:
                # The attempt was restarted while this submission was in flight.
                return error is None
            self.submitting = False
            self.submission_error = error
            if error is not None:
                return False
            self.submitted = True
            if self.session_store:
                self.session_store.clear()
        return True

    def _navigate(self, route: str):
        if self.navigator:
            self.navigator(route)
