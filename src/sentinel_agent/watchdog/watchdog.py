"""
CPU breach detection with a cooldown and an expiring incident slot.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..models.runtime import Incident
from ..system import ReadWriteLock
from .log_tail import read_last_lines

logger = logging.getLogger(__name__)


class Watchdog:
    """
    Turns CPU readings into incidents.

    A reading at or above the threshold creates an Incident that carries the
    tail of the access log, the requests most likely responsible for the
    spike. While the cooldown runs, further breaches return the existing
    incident. ``get_latest`` hides the incident once it is older than
    ``incident_ttl``.

    Attributes:
        cooldown: Minimum spacing between two incidents.
        incident_ttl: How long an incident stays visible.
        tail_lines: Number of log lines attached to an incident.
        tail_max_bytes: Upper bound on bytes read from the log per incident.
    """

    def __init__(
        self,
        cooldown: timedelta = timedelta(seconds=60),
        incident_ttl: timedelta = timedelta(seconds=300),
        tail_lines: int = 15,
        tail_max_bytes: int = 20000,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.cooldown = cooldown
        self.incident_ttl = incident_ttl
        self.tail_lines = tail_lines
        self.tail_max_bytes = tail_max_bytes
        self._clock = clock
        self._lock = ReadWriteLock()
        self._incident: Optional[Incident] = None
        self._last_fired: Optional[datetime] = None

    def check(self, cpu_percent: float, threshold: float, log_path: str) -> Optional[Incident]:
        """
        Evaluate one CPU reading.

        Returns:
            None below the threshold, the current incident while cooling down,
            or a freshly recorded incident otherwise.
        """
        if cpu_percent < threshold:
            return None

        now = self._clock()
        with self._lock.read_locked():
            if self._last_fired is not None and now - self._last_fired < self.cooldown:
                return self._incident

        suspects = read_last_lines(log_path, self.tail_lines, self.tail_max_bytes)
        incident = Incident(
            timestamp=now,
            cpu_percent=cpu_percent,
            suspect_requests=tuple(suspects),
        )

        with self._lock.write_locked():
            # Another caller may have fired while the tail was being read.
            if self._last_fired is not None and now - self._last_fired < self.cooldown:
                return self._incident
            self._incident = incident
            self._last_fired = now

        logger.warning(
            f"CPU spike detected: {cpu_percent:.1f}% >= {threshold}% "
            f"({len(suspects)} suspect requests captured)"
        )
        return incident

    def get_latest(self) -> Optional[Incident]:
        """Return the current incident, or None if there is none or it expired."""
        with self._lock.read_locked():
            incident = self._incident
        if incident is None:
            return None
        if self._clock() - incident.timestamp > self.incident_ttl:
            return None
        return incident
