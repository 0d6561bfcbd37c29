"""In-process timer that runs quiz reconciliation periodically."""

import logging
import threading
from collections.abc import Callable

from sqlalchemy.orm import Session

from lms_quiz.core.clock import Clock
from lms_quiz.jobs.reconcile import run_quiz_reconcile

logger = logging.getLogger(__name__)


class ReconciliationScheduler:
    """
    Runs ``run_quiz_reconcile`` once on start, then every ``interval_seconds``.

    Owned by the application lifespan. A tick that fires while the previous
    one is still running is skipped; a failing tick is logged and the timer
    keeps going.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock,
        interval_seconds: float = 60,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="quiz-reconcile", daemon=True)
        self._thread.start()
        logger.info(f"Quiz reconciliation scheduler started (every {self.interval_seconds}s)")

    def stop(self, timeout: float | None = 10) -> None:
        """
        Signal the loop to exit and wait up to ``timeout`` for it.

        If the thread is still inside a long pass when the wait ends, it keeps
        its handle, so ``is_running`` stays true and ``start`` will not spawn a
        second loop next to it.
        """
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Quiz reconciliation scheduler did not stop within timeout")
            return
        self._thread = None
        logger.info("Quiz reconciliation scheduler stopped")

    def tick(self) -> bool:
        """
        Run one pass unless one is already in flight.

        Returns:
            True if a pass ran (successfully or not)
        """
        if not self._running.acquire(blocking=False):
            logger.warning("Quiz reconciliation still running, skipping tick")
            return False
        try:
            run_quiz_reconcile(self.session_factory, self.clock)
        except Exception as e:
            logger.error(f"Quiz reconciliation tick failed: {e}", exc_info=True)
        finally:
            self._running.release()
        return True

    def _loop(self) -> None:
        self.tick()
        while not self._stop.wait(self.interval_seconds):
            self.tick()
