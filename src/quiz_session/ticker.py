"""Ticker: background one-second tick source for the question countdown."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """Calls `callback` every `interval` seconds on a daemon thread until stopped."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self.is_running():
            return
        # Each run owns its event, so a thread left over from a previous run exits.
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,),
                                        name="quiz-ticker", daemon=True)
        self._thread.start()
        logger.debug("Ticker started")

    def stop(self, wait: bool = True):
        """Stop ticking. With wait=False the thread is left to exit on its own."""
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)
        self._thread = None
        logger.debug("Ticker stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def _run(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Tick callback failed: {e}")
