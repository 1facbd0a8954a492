"""Question Shuffler: validates questions and fixes their per-attempt order."""

import random
import logging
from typing import Optional, List, Tuple

from quiz_session.models import Question, SessionSnapshot

logger = logging.getLogger(__name__)


def is_valid_question(question) -> bool:
    """A question needs an id, a prompt, at least one option and a correct answer."""
    if question is None:
        return False
    return (
        bool(question.id)
        and bool(question.prompt)
        and question.options is not None
        and len(question.options) > 0
        and question.correct_answer is not None
    )


def filter_valid_questions(questions) -> List[Question]:
    """Drop invalid questions and repeated ids, keeping the first occurrence."""
    valid = []
    seen = set()
    for q in questions or []:
        if is_valid_question(q) and q.id not in seen:
            seen.add(q.id)
            valid.append(q)
    dropped = len(questions or []) - len(valid)
    if dropped:
        logger.warning(f"Filtered out {dropped} invalid question(s)")
    return valid


class QuestionShuffler:
    """Produces the fixed question order used for the rest of an attempt."""

    def __init__(self, rng_seed: Optional[int] = None, session_store=None):
        self._rng = random.Random(rng_seed)
        self.session_store = session_store

    def shuffle(self, questions, resumed: Optional[SessionSnapshot] = None
                ) -> Tuple[List[Question], List[str]]:
        """Return (ordered questions, order of ids).

        A resumed snapshot is reused when its order covers as many questions as
        the valid set; ids that no longer resolve are dropped. Otherwise a new
        permutation is drawn and saved right away so reloads see the same order.
        """
        valid = filter_valid_questions(questions)
        if not valid:
            return [], []

        if resumed is not None and len(resumed.shuffled_order) == len(valid):
            by_id = {q.id: q for q in valid}
            ordered = []
            for qid in resumed.shuffled_order:
                question = by_id.pop(qid, None)
                if question is not None:
                    ordered.append(question)
            if len(ordered) < len(valid):
                logger.warning(
                    f"Resumed order referenced {len(valid) - len(ordered)} unknown question(s)"
                )
            logger.info(f"Resumed question order for {len(ordered)} questions")
            return ordered, [q.id for q in ordered]

        ordered = valid[:]
        self._rng.shuffle(ordered)
        order = [q.id for q in ordered]
        if self.session_store is not None:
            self.session_store.save(SessionSnapshot(shuffled_order=order))
        logger.info(f"Shuffled {len(ordered)} questions into a new order")
        return ordered, order
