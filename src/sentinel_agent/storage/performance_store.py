"""
In-memory ring buffer of per-request performance entries.
"""

import dataclasses
import logging
from collections import deque
from datetime import datetime
from typing import Deque, List

from ..models.telemetry import PerformanceEntry
from ..system import ReadWriteLock

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class PerformanceStore:
    """
    Bounded FIFO of the most recent PerformanceEntry records.

    Once ``capacity`` entries are held, each ``add`` evicts the oldest one.
    Nothing is persisted; restarting the agent starts from an empty buffer.
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._entries: Deque[PerformanceEntry] = deque(maxlen=capacity)
        self._lock = ReadWriteLock()

    def add(self, entry: PerformanceEntry) -> PerformanceEntry:
        """Append an entry, stamping it with the current time if it has none."""
        if not entry.timestamp:
            entry = dataclasses.replace(entry, timestamp=datetime.now().strftime(TIMESTAMP_FORMAT))
        with self._lock.write_locked():
            self._entries.append(entry)
        logger.debug(f"Stored performance entry for {entry.method} {entry.uri}")
        return entry

    def get_all(self) -> List[PerformanceEntry]:
        """Return a copy of the buffer, oldest first."""
        with self._lock.read_locked():
            return list(self._entries)

    def clear(self) -> None:
        with self._lock.write_locked():
            self._entries.clear()
        logger.info("Performance store cleared")

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)
