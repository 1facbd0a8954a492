"""Console Runner: plays a quiz attempt in the terminal."""

import logging
from typing import Callable, Optional

from quiz_session.models import Question, QuizResult
from quiz_session.state_machine import Phase

logger = logging.getLogger(__name__)

TERMS = [
    "Each question has its own time limit",
    "Unanswered questions count as wrong when time runs out",
    "Once submitted, answers cannot be changed",
    "Reloading keeps your question order and progress",
]


def format_summary(result: QuizResult, is_qualification_round: bool = False) -> str:
    """Build the end-of-attempt summary text."""
    headline = "Quiz completed!" if result.passed else "Quiz completed."
    summary = (
        f"{headline} Your score: {result.score} / {result.total} "
        f"({result.percentage_score:.1f}%) - {'Passed!' if result.passed else 'Not passed'}"
    )
    if is_qualification_round:
        if result.passed:
            summary += "\nYou have qualified to participate in the main quiz."
        else:
            summary += f"\nYou needed at least {result.minimum_score_percentage:g}% to pass."
    return summary


def parse_choice(text: str, question: Question) -> Optional[str]:
    """Map typed input (option number or option text) to an option."""
    text = text.strip()
    if not text:
        return None
    if text.isdigit():
        index = int(text) - 1
        if 0 <= index < len(question.options):
            return question.options[index]
        return None
    for option in question.options:
        if option.lower() == text.lower():
            return option
    return None


class ConsoleRunner:
    """Renders engine views to stdout and feeds typed answers back in."""

    def __init__(self, engine, input_fn: Callable[[str], str] = input,
                 output_fn: Callable[[str], None] = print, use_clock: bool = True):
        self.engine = engine
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.use_clock = use_clock

    def say(self, text: str):
        self.output_fn(text)

    def ask(self, prompt: str) -> Optional[str]:
        try:
            return self.input_fn(prompt)
        except (EOFError, KeyboardInterrupt):
            return None

    def confirm_terms(self) -> bool:
        view = self.engine.view_state()
        kind = "qualification quiz" if view.is_qualification_round else "quiz"
        self.say(f"By starting this {kind}, you agree to the following:")
        for term in TERMS:
            self.say(f"  - {term}")
        if view.is_qualification_round:
            self.say(f"  - You must score at least {view.minimum_score_percentage:g}% to pass")
        reply = self.ask("Accept? [y/N]: ")
        return bool(reply) and reply.strip().lower() in ("y", "yes")

    def show_question(self, view):
        question = view.current_question
        self.say(f"\nQuestion {view.question_number} of {view.total} "
                 f"({view.time_remaining}s left)")
        self.say(question.prompt)
        for i, option in enumerate(question.options, start=1):
            self.say(f"  {i}. {option}")

    def run_question(self, view) -> bool:
        """Ask the current question. Returns False if the user walked away."""
        self.show_question(view)
        index = view.question_number - 1
        while True:
            reply = self.ask("[Answer]: ")
            if reply is None:
                return False
            choice = parse_choice(reply, view.current_question)
            if choice is None:
                if self.engine.view_state().question_number != view.question_number:
                    self.say("Time ran out for that question.")
                    return True
                self.say("Please enter an option number or its exact text.")
                continue
            if not self.engine.answer(choice, question_index=index):
                self.say("Time ran out for that question.")
            return True

    def run(self) -> Optional[QuizResult]:
        """Run the attempt to completion. Returns the result, or None if not finished."""
        view = self.engine.view_state()
        if view.phase == Phase.UNAUTHENTICATED:
            self.say("Please log in to take the quiz.")
            return None
        if view.phase == Phase.NO_QUESTIONS:
            self.say(view.load_error or "No valid questions available for this quiz.")
            return None

        if not self.confirm_terms():
            self.engine.decline_terms()
            return None

        self.engine.accept_terms()
        if self.use_clock:
            self.engine.start_clock()
        try:
            while True:
                view = self.engine.view_state()
                if view.phase != Phase.RUNNING:
                    break
                if not self.run_question(view):
                    self.say("\nProgress saved. Run again to resume.")
                    return None
        finally:
            self.engine.close()

        return self.show_outcome()

    def show_outcome(self) -> Optional[QuizResult]:
        view = self.engine.view_state()
        if view.result is None:
            return None
        self.say("\n" + format_summary(view.result, view.is_qualification_round))

        if view.submitting:
            self.say("Submitting results...")
        self.engine.wait_for_submission()
        while self.engine.submission_error:
            self.say(f"Warning: {self.engine.submission_error}")
            reply = self.ask("Retry submission? [y/N]: ")
            if not reply or reply.strip().lower() not in ("y", "yes"):
                break
            self.engine.retry_submission()

        self.engine.acknowledge_outcome()
        return view.result
