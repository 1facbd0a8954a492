"""Session Store: persists in-progress quiz snapshots in SQLite."""

import json
import sqlite3
import time
import logging
from typing import Optional

from quiz_session.models import SessionSnapshot

logger = logging.getLogger(__name__)

SESSION_KEY = "quizSession"
DEFAULT_MAX_AGE_SECONDS = 86400


class SessionStore:
    """Best-effort key/value persistence for one session snapshot.

    Every operation swallows storage and decoding failures: a broken store
    behaves like an empty one and never interrupts the running quiz.
    """

    def __init__(self, db_path: str = "quiz_sessions.db", key: str = SESSION_KEY,
                 max_age_seconds: Optional[float] = DEFAULT_MAX_AGE_SECONDS):
        self.db_path = db_path
        self.key = key
        self.max_age_seconds = max_age_seconds
        self._init_db()

    def _init_db(self):
        """Initialize the SQLite database."""
        try:
            conn = sqlite3.connect(self.db_path)
            c = conn.cursor()
            c.execute("""
                CREATE TABLE IF NOT EXISTS session_snapshots (
                    key TEXT PRIMARY KEY,
                    payload TEXT,
                    saved_at REAL
                )
            """)
            conn.commit()
            conn.close()
            logger.info(f"Session store initialized at {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize session store: {e}")

    def save(self, snapshot: SessionSnapshot):
        """Persist a snapshot under the session key, replacing any previous one."""
        try:
            payload = json.dumps(snapshot.to_dict())
            conn = sqlite3.connect(self.db_path)
            c = conn.cursor()
            c.execute("""
                INSERT OR REPLACE INTO session_snapshots (key, payload, saved_at)
                VALUES (?, ?, ?)
            """, (self.key, payload, snapshot.saved_at))
            conn.commit()
            conn.close()
            logger.debug(f"Saved session snapshot ({len(snapshot.shuffled_order)} questions)")
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Failed to save session snapshot: {e}")

    def load(self) -> Optional[SessionSnapshot]:
        """Return the last saved snapshot, or None if absent, expired or unreadable."""
        try:
            conn = sqlite3.connect(self.db_path)
            c = conn.cursor()
            c.execute("SELECT payload, saved_at FROM session_snapshots WHERE key = ?", (self.key,))
            row = c.fetchone()
            conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to load session snapshot: {e}")
            return None

        if row is None:
            return None

        payload, saved_at = row
        if self.max_age_seconds is not None and saved_at is not None:
            if time.time() - saved_at > self.max_age_seconds:
                logger.info("Session snapshot expired; ignoring it.")
                return None

        try:
            return SessionSnapshot.from_dict(json.loads(payload))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding unreadable session snapshot: {e}")
            return None

    def clear(self):
        """Remove the persisted snapshot."""
        try:
            conn = sqlite3.connect(self.db_path)
            c = conn.cursor()
            c.execute("DELETE FROM session_snapshots WHERE key = ?", (self.key,))
            conn.commit()
            conn.close()
            logger.debug("Cleared session snapshot")
        except sqlite3.Error as e:
            logger.error(f"Failed to clear session snapshot: {e}")
