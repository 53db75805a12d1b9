"""Fixed-interval polling service with manual triggers."""

import logging
import threading
from typing import Optional

from .poll import CycleStats, PollingOrchestrator

logger = logging.getLogger(__name__)


class PollingService:
    """Drives the orchestrator on a timer.

    The timer and :meth:`trigger` both go through the orchestrator's cycle
    guard, so a firing that overlaps a running cycle is dropped. There is no
    cancellation of an in-flight cycle; :meth:`stop` takes effect between
    cycles.
    """

    def __init__(self, orchestrator: PollingOrchestrator, interval_seconds: float):
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger(self) -> Optional[CycleStats]:
        """Run a cycle now in the calling thread; None if one is already running."""
        logger.info("Manual polling trigger")
        return self.orchestrator.run_cycle()

    def trigger_async(self) -> threading.Thread:
        """Run a manual cycle on a daemon thread."""
        thread = threading.Thread(target=self.trigger, name="recordwatch-manual", daemon=True)
        thread.start()
        return thread

    def run_forever(self, run_immediately: bool = True) -> None:
        """Block, polling every ``interval_seconds`` until :meth:`stop`."""
        logger.info("Starting polling service (every %.0f seconds)", self.interval_seconds)
        if run_immediately:
            self._tick()
        while not self._stop.wait(self.interval_seconds):
            self._tick()
        logger.info("Polling service stopped")

    def start(self, run_immediately: bool = True) -> threading.Thread:
        """Run :meth:`run_forever` on a background thread."""
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            kwargs={"run_immediately": run_immediately},
            name="recordwatch-poller",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _tick(self) -> None:
        if self.orchestrator.run_cycle() is None:
            logger.info("Timer tick skipped; previous cycle still running")


__all__ = ["PollingService"]
