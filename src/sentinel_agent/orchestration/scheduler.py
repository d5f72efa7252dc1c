"""
Background polling of process telemetry and the CPU watchdog.
"""

import logging
import threading
import time
from typing import Optional

from ..collectors import ProcessMonitor
from ..validation import ErrorSeverity, handle_error
from ..watchdog import Watchdog

logger = logging.getLogger(__name__)


class PollingScheduler:
    """
    Runs ``tick()`` every ``interval`` seconds on a daemon thread.

    A tick polls the process monitor and feeds the web tier's CPU figure to
    the watchdog. A failing tick is logged and the loop carries on.

    Attributes:
        monitor: The process monitor; this thread is its only poller.
        watchdog: Receives the CPU reading of every tick.
        threshold: CPU percentage at which the watchdog fires.
        log_path: Access log attached to incidents.
        interval: Seconds between ticks.
    """

    def __init__(
        self,
        monitor: ProcessMonitor,
        watchdog: Watchdog,
        threshold: float,
        log_path: str,
        interval: float = 5.0,
    ):
        self.monitor = monitor
        self.watchdog = watchdog
        self.threshold = threshold
        self.log_path = log_path
        self.interval = interval

        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._start_time: Optional[float] = None

    def tick(self) -> None:
        """Poll once and let the watchdog evaluate the result."""
        stats = self.monitor.poll()
        self.watchdog.check(stats.php_fpm_cpu_percent, self.threshold, self.log_path)

    def _run(self) -> None:
        logger.info(f"Polling scheduler started (interval: {self.interval}s)")
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                handle_error(
                    error=e,
                    context="telemetry poll",
                    severity=ErrorSeverity.ERROR,
                    reraise=False,
                    logger=logger,
                )
            self._stop_event.wait(self.interval)
        logger.info("Polling scheduler stopped")

    def start(self) -> None:
        """
        Start the polling thread.

        Raises:
            RuntimeError: If the scheduler is already running.
        """
        with self._lock:
            if self.is_running:
                raise RuntimeError("PollingScheduler is already running")
            self._stop_event.clear()
            self._start_time = time.monotonic()
            self._thread = threading.Thread(
                target=self._run, name="sentinel-poller", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: float = 10.0) -> bool:
        """
        Signal the polling thread to stop and wait for it.

        Returns:
            True if the thread stopped within the timeout (or was not running).
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                logger.debug("PollingScheduler was not running")
                return True
            self._stop_event.set()

        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"Timeout waiting for PollingScheduler to stop after {timeout}s")
            return False

        with self._lock:
            self._thread = None
            if self._start_time is not None:
                logger.info(f"PollingScheduler ran for {time.monotonic() - self._start_time:.2f} seconds")
        return True

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()
