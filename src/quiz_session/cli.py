"""Command-line entry point for running a quiz attempt in the terminal."""

import argparse
import json
import logging
import sys

from quiz_session.api_client import QuizApiClient
from quiz_session.auth import UserContext
from quiz_session.config import load_config
from quiz_session.console import ConsoleRunner
from quiz_session.engine import QuizSessionEngine
from quiz_session.normalizer import normalize_questions
from quiz_session.session_store import SessionStore

logger = logging.getLogger(__name__)


def load_question_file(path: str, default_time_limit: int) -> list:
    with open(path, "r") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("questions", [])
    return normalize_questions(raw, default_time_limit)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Timed multiple-choice quiz")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--questions", default=None, help="Question bank JSON path")
    parser.add_argument("--qualification", action="store_true",
                        help="Fetch a qualification round from the backend")
    parser.add_argument("--submit", action="store_true",
                        help="Submit the final score to the backend")
    parser.add_argument("--user", default=None, help="User id for this attempt")
    parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")
    parser.add_argument("--no-clock", action="store_true", help="Disable the countdown")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    config = load_config(args.config)
    quiz_cfg = config["quiz"]
    api_cfg = config["api"]
    session_cfg = config["session"]
    user_cfg = config["user"]

    user = UserContext(
        user_id=args.user or user_cfg.get("id"),
        username=user_cfg.get("username"),
        token=api_cfg.get("token"),
    )
    store = SessionStore(
        db_path=session_cfg.get("db_path", "quiz_sessions.db"),
        max_age_seconds=session_cfg.get("max_age_seconds"),
    )
    api_client = QuizApiClient(
        base_url=api_cfg.get("base_url"),
        user_context=user,
        timeout=api_cfg.get("timeout", 15),
        default_time_limit=quiz_cfg.get("default_time_limit", 30),
    )

    engine_kwargs = dict(
        session_store=store,
        navigator=lambda route: print(f"\n[Leaderboard: {route}]"),
        rng_seed=args.seed if args.seed is not None else quiz_cfg.get("seed"),
        minimum_score_percentage=quiz_cfg.get("minimum_score_percentage", 70),
        tick_interval=quiz_cfg.get("tick_interval", 1.0),
    )

    if args.qualification:
        engine = QuizSessionEngine.for_qualification(api_client, None, user, **engine_kwargs)
    elif args.questions:
        questions = load_question_file(args.questions, quiz_cfg.get("default_time_limit", 30))
        engine = QuizSessionEngine(
            questions, None, user,
            submitter=api_client if args.submit else None,
            **engine_kwargs,
        )
    else:
        parser.error("one of --questions or --qualification is required")

    runner = ConsoleRunner(engine, use_clock=not args.no_clock)
    result = runner.run()
    if result is None:
        return 1
    logger.info(f"Attempt finished: {result.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
