"""
Periodic sync driver.

Runs the orchestrator's cycle on a fixed interval from a background thread.
"""

import threading
from typing import Optional

from logmirror.errors import CycleAlreadyInProgress, MirrorError
from logmirror.sync.orchestrator import SyncOrchestrator
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


class PeriodicSync:
    """
    Background thread that triggers a sync cycle every interval.

    The first cycle runs as soon as the thread starts. Failed cycles are
    logged and the loop carries on; the next tick is the retry.

    Attributes:
        interval_seconds: Pause between cycle starts
    """

    def __init__(self, orchestrator: SyncOrchestrator, interval_seconds: float = 60.0):
        """
        Initialize periodic sync.

        Args:
            orchestrator: Orchestrator to drive
            interval_seconds: Seconds between cycles

        Raises:
            ValueError: If interval is not positive
        """
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")

        self.interval_seconds = interval_seconds
        self._orchestrator = orchestrator
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._cycles_run = 0
        self._cycles_failed = 0
        self._cycles_skipped = 0

    def start(self) -> None:
        """Start the background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="logmirror-sync",
            daemon=True,
        )
        self._thread.start()

        logger.info("Periodic sync started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the background thread.

        Args:
            timeout: Max seconds to wait for an in-flight cycle
        """
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        logger.info(
            "Periodic sync stopped",
            cycles_run=self._cycles_run,
            cycles_failed=self._cycles_failed,
            cycles_skipped=self._cycles_skipped,
        )

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> None:
        """Run one cycle, absorbing the failures a scheduler outlives."""
        try:
            self._orchestrator.run_cycle()
            self._cycles_run += 1
        except CycleAlreadyInProgress:
            self._cycles_skipped += 1
            logger.debug("Cycle already in progress, skipping tick")
        except MirrorError as e:
            self._cycles_failed += 1
            logger.warning("Scheduled cycle failed", **e.to_dict())
        except Exception as e:
            self._cycles_failed += 1
            logger.error("Sync thread error", error=str(e), exc_info=True)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval_seconds)

    def stats(self) -> dict:
        return {
            "cycles_run": self._cycles_run,
            "cycles_failed": self._cycles_failed,
            "cycles_skipped": self._cycles_skipped,
            "running": self.is_running(),
        }
