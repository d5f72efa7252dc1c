"""
Telemetry data models.

This module defines the process samples and aggregate statistics produced by
the process monitor, and the performance entries reported by the probe that
runs inside an instrumented application.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ProcessSample:
    """
    A point-in-time reading of one classified runtime process.

    Attributes:
        pid: Process ID.
        name: The process name (e.g., "php-fpm8.3").
        command_line: The full command line, space-joined.
        resident_memory_bytes: Resident set size in bytes.
        cpu_percent: CPU usage since the previous poll of the same handle.
        tier: "web" or "cli".
    """

    pid: int
    name: str
    command_line: str
    resident_memory_bytes: int
    cpu_percent: float
    tier: str


@dataclass(frozen=True)
class SystemStats:
    """Aggregate of one poll of the process table plus the agent's own footprint."""

    agent_memory_mb: int = 0
    agent_thread_count: int = 0
    php_web_memory_mb: int = 0
    php_cli_memory_mb: int = 0
    php_fpm_cpu_percent: float = 0.0
    php_fpm_worker_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memory_usage_mb": self.agent_memory_mb,
            "num_threads": self.agent_thread_count,
            "php_web_memory_mb": self.php_web_memory_mb,
            "php_cli_memory_mb": self.php_cli_memory_mb,
            "php_fpm_cpu_percent": self.php_fpm_cpu_percent,
            "php_fpm_worker_count": self.php_fpm_worker_count,
        }


@dataclass(frozen=True)
class RuntimeStatus:
    """Whether the PHP runtime looks alive, with the latest statistics."""

    php_fpm: bool
    system_stats: SystemStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "php_fpm": self.php_fpm,
            "system_stats": self.system_stats.to_dict(),
        }


@dataclass(frozen=True)
class SlowQuery:
    """A single SQL statement that exceeded the probe's slow query threshold."""

    sql: str
    duration_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {"sql": self.sql, "duration_ms": self.duration_ms}


@dataclass(frozen=True)
class PerformanceEntry:
    """
    One request's performance figures, as reported by the probe.

    Entries are immutable; the store assigns a timestamp with
    ``dataclasses.replace`` when the producer omitted one.
    """

    method: str = ""
    uri: str = ""
    duration_ms: float = 0.0
    memory_mb: float = 0.0
    query_count: int = 0
    slow_queries: Tuple[SlowQuery, ...] = field(default_factory=tuple)
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PerformanceEntry":
        """
        Build an entry from the probe's JSON field names.

        Missing fields take their zero values. Raises ``TypeError`` or
        ``ValueError`` when a present field has an unusable type.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"performance entry must be an object, got {type(data).__name__}")

        raw_queries = data.get("slow_queries") or []
        if not isinstance(raw_queries, list):
            raise TypeError("slow_queries must be a list")
        slow_queries = []
        for query in raw_queries:
            if not isinstance(query, Mapping):
                raise TypeError("slow_queries items must be objects")
            slow_queries.append(
                SlowQuery(
                    sql=str(query.get("sql", "")),
                    duration_ms=_as_float(query.get("duration_ms", 0.0)),
                )
            )

        return cls(
            method=str(data.get("method") or ""),
            uri=str(data.get("uri") or ""),
            duration_ms=_as_float(data.get("duration_ms", 0.0)),
            memory_mb=_as_float(data.get("memory_mb", 0.0)),
            query_count=_as_int(data.get("query_count", 0)),
            slow_queries=tuple(slow_queries),
            timestamp=str(data.get("timestamp") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "uri": self.uri,
            "duration_ms": self.duration_ms,
            "memory_mb": self.memory_mb,
            "query_count": self.query_count,
            "slow_queries": [query.to_dict() for query in self.slow_queries],
            "timestamp": self.timestamp,
        }


def _as_float(value: Optional[Any]) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


def _as_int(value: Optional[Any]) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value
