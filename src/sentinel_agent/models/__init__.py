"""
Data models and structures for the agent.

Configuration Models:
- Server, monitor, watchdog, store and injector settings
- Process tier classification rules

Telemetry Models:
- Process samples and aggregate system statistics
- Performance entries reported by the in-app probe

Runtime Models:
- Audit registry entries, incidents and injection results

Log Models:
- Parsed Laravel log lines, deadlock entries and artisan routes
"""

# Configuration models
from .config import (
    AppConfig,
    InjectorConfig,
    MonitorConfig,
    ServerConfig,
    StoreConfig,
    TierRuleConfig,
    WatchdogConfig,
)

# Telemetry models
from .telemetry import (
    PerformanceEntry,
    ProcessSample,
    RuntimeStatus,
    SlowQuery,
    SystemStats,
)

# Runtime models
from .runtime import AuditStatus, Incident, InjectionResult

# Log models
from .logs import DeadlockEntry, ParsedLogLine, RouteEntry

__all__ = [
    # Configuration
    "AppConfig",
    "InjectorConfig",
    "MonitorConfig",
    "ServerConfig",
    "StoreConfig",
    "TierRuleConfig",
    "WatchdogConfig",
    # Telemetry
    "PerformanceEntry",
    "ProcessSample",
    "RuntimeStatus",
    "SlowQuery",
    "SystemStats",
    # Runtime
    "AuditStatus",
    "Incident",
    "InjectionResult",
    # Logs
    "DeadlockEntry",
    "ParsedLogLine",
    "RouteEntry",
]
