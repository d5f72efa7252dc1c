"""
Registry of projects with an active audit.

The registry lives in memory only. Calls for the same project are serialized
by a per-project mutex, so two concurrent enables cannot both pass the
conflict check; calls for different projects run independently.
"""

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Union

from ..models.runtime import AuditStatus, InjectionResult
from ..system import ReadWriteLock
from ..validation import AuditConflict
from .injector import Injector

logger = logging.getLogger(__name__)


def normalize_project_path(project_path: Union[str, Path]) -> str:
    """Return the absolute, normalised form used as the registry key."""
    return os.path.abspath(os.fspath(project_path))


class AuditManager:
    """
    Enables and disables audits and tracks which projects are instrumented.

    Attributes:
        injector: Performs the file edits.
    """

    def __init__(self, injector: Injector, clock: Callable[[], datetime] = datetime.now):
        self.injector = injector
        self._clock = clock
        self._lock = ReadWriteLock()
        self._audits: Dict[str, AuditStatus] = {}
        self._path_locks: Dict[str, List[Any]] = {}
        self._path_locks_guard = threading.Lock()

    @contextmanager
    def _project_locked(self, key: str) -> Iterator[None]:
        # Reference counted: an entry lives only while a call for its project
        # is in progress.
        with self._path_locks_guard:
            entry = self._path_locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._path_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._path_locks[key]

    @property
    def pending_project_locks(self) -> int:
        """Number of projects with an enable or disable in progress."""
        with self._path_locks_guard:
            return len(self._path_locks)

    def enable(self, project_path: Union[str, Path]) -> InjectionResult:
        """
        Instrument a project and register it as active.

        Raises:
            AuditConflict: An audit is already active for this project.
            InjectorError: The injector failed; nothing is registered.
        """
        key = normalize_project_path(project_path)
        with self._project_locked(key):
            with self._lock.read_locked():
                if key in self._audits:
                    raise AuditConflict(key)

            result = self.injector.enable_audit(key)

            with self._lock.write_locked():
                self._audits[key] = AuditStatus(project_path=key, start_time=self._clock())
        logger.info(f"Audit started for {key}")
        return result

    def disable(self, project_path: Union[str, Path]) -> None:
        """
        Remove instrumentation from a project.

        The injector cleanup runs even when the project is not registered,
        so a file instrumented before an agent restart can still be cleaned.
        Disabling an inactive project succeeds.
        """
        key = normalize_project_path(project_path)
        with self._project_locked(key):
            self.injector.disable_audit(key)
            with self._lock.write_locked():
                removed = self._audits.pop(key, None)
        if removed is not None:
            logger.info(f"Audit stopped for {key}")
        else:
            logger.info(f"Cleanup requested for inactive project {key}")

    def is_active(self, project_path: Union[str, Path]) -> bool:
        key = normalize_project_path(project_path)
        with self._lock.read_locked():
            return key in self._audits

    def list_active(self) -> List[AuditStatus]:
        with self._lock.read_locked():
            return list(self._audits.values())

    def status(self) -> Dict[str, Dict[str, Any]]:
        """Return ``{"<path>:audit": {path, running, start_time, port}}``."""
        with self._lock.read_locked():
            audits = list(self._audits.values())
        return {f"{audit.project_path}:audit": audit.to_dict() for audit in audits}
