"""
Runtime data models.

This module contains the records the agent keeps while it runs: the audit
registry entries, the watchdog incidents and the result of an injection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class AuditStatus:
    """
    Registry entry for a project whose entry file carries the probe include.
    """

    # Absolute, normalised project path; the registry key.
    project_path: str
    start_time: datetime
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        # The injection model never owns a listening process, hence port 0.
        return {
            "path": self.project_path,
            "running": self.active,
            "start_time": self.start_time.isoformat(),
            "port": 0,
        }


@dataclass(frozen=True)
class Incident:
    """A CPU breach with the log lines that were most recent when it fired."""

    timestamp: datetime
    cpu_percent: float
    suspect_requests: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "cpu_percent": self.cpu_percent,
            "suspect_requests": list(self.suspect_requests),
        }


@dataclass(frozen=True)
class InjectionResult:
    """What ``Injector.enable_audit`` did to a project."""

    entry_file: Path
    probe_file: Path
    already_injected: bool = False
    smart_hook_applied: bool = False
