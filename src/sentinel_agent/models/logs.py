"""
Models for what the agent reads out of a Laravel project: parsed log lines,
deadlock entries and the route table.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ParsedLogLine:
    """
    A Laravel log line split into its parts.

    Example input::

        [2024-01-01 12:00:00] local.INFO: [SENTINEL_PERF] {"uri": "/users"}
    """

    timestamp: str
    environment: str
    level: str
    message: str
    # The JSON object found in the message, if any.
    payload: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class DeadlockEntry:
    """A database lock error found in the application log."""

    timestamp: str
    message: str
    # Upper-cased log level; empty for lines without the Laravel prefix.
    level: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "level": self.level, "message": self.message}


@dataclass(frozen=True)
class RouteEntry:
    """One row of ``php artisan route:list --json``."""

    method: str
    uri: str
    name: str = ""
    action: str = ""
    domain: str = ""
    # Laravel reports a string or a list depending on the version.
    middleware: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteEntry":
        if not isinstance(data, Mapping):
            raise TypeError(f"route must be an object, got {type(data).__name__}")
        middleware = data.get("middleware") or ()
        if isinstance(middleware, str):
            middleware = tuple(m for m in middleware.splitlines() if m)
        elif isinstance(middleware, list):
            middleware = tuple(str(m) for m in middleware)
        else:
            raise TypeError(f"unexpected middleware value {middleware!r}")
        return cls(
            method=str(data.get("method") or ""),
            uri=str(data.get("uri") or ""),
            name=str(data.get("name") or ""),
            action=str(data.get("action") or ""),
            domain=str(data.get("domain") or ""),
            middleware=middleware,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "method": self.method,
            "uri": self.uri,
            "name": self.name,
            "action": self.action,
            "middleware": list(self.middleware),
        }
