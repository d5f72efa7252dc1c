"""
Configuration data models.

This module contains the configuration structures for the HTTP server, the
process monitor, the watchdog, the performance store, the injector and the
process tier classification rules.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class ServerConfig:
    """
    Configuration for the control surface, loaded from `[server]`.
    """

    host: str = "127.0.0.1"
    port: int = 8888
    # Origins allowed to call the API from a browser (the dashboard).
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])


@dataclass
class MonitorConfig:
    """
    Configuration for process sampling, loaded from `[monitor]`.
    """

    # Seconds between two polls of the process table.
    interval_seconds: float = 5.0
    # Only processes whose name contains this marker are classified.
    runtime_marker: str = "php"
    # Well-known PHP-FPM control endpoint used as a secondary liveness signal.
    control_host: str = "127.0.0.1"
    control_port: int = 9000
    probe_timeout: float = 0.1
    classification_cache_size: int = 4096


@dataclass
class WatchdogConfig:
    """
    Configuration for CPU breach detection, loaded from `[watchdog]`.
    """

    cpu_threshold: int = 50
    # Access log whose tail is attached to incidents. Empty disables the tail.
    log_path: str = ""
    cooldown_seconds: float = 60.0
    incident_ttl_seconds: float = 300.0
    tail_lines: int = 15
    tail_max_bytes: int = 20000


@dataclass
class StoreConfig:
    """
    Configuration for the in-memory performance store, loaded from `[store]`.
    """

    capacity: int = 100


@dataclass
class InjectorConfig:
    """
    Configuration baked into the probe script, loaded from `[injector]`.
    """

    # Deadline for the probe's outbound ingest call, in seconds.
    probe_timeout: float = 0.1
    # Queries slower than this are reported individually.
    slow_query_threshold_ms: float = 50.0


@dataclass
class TierRuleConfig:
    """
    A process tier classification rule, loaded from `rules.toml`.
    """

    # Priority level for the rule (higher numbers processed first).
    priority: int
    # The tier this rule assigns ('web' or 'cli').
    tier: str
    # The field to match against ('name' or 'cmdline').
    match_field: str
    # The type of match to perform ('exact', 'in_list', 'regex', 'contains').
    match_type: str
    # A string for exact/regex/contains, a list for in_list.
    patterns: Union[str, List[str]] = ""
    # Optional comment describing the rule.
    comment: str = ""


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    server: ServerConfig
    monitor: MonitorConfig
    watchdog: WatchdogConfig
    store: StoreConfig
    injector: InjectorConfig
    # Tier rules, sorted by priority (highest first).
    rules: List[TierRuleConfig]
    # Where the configuration was loaded from, None for built-in defaults.
    source_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
