"""
Configuration validation utilities.

This module provides specialized validation functions for each section of the
agent configuration and for the process tier rules.
"""

import logging
from typing import Any, Dict, List

from ..models.config import (
    InjectorConfig,
    MonitorConfig,
    ServerConfig,
    StoreConfig,
    TierRuleConfig,
    WatchdogConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
)

logger = logging.getLogger(__name__)

VALID_TIERS = ["web", "cli"]
VALID_MATCH_FIELDS = ["name", "cmdline"]
VALID_MATCH_TYPES = ["exact", "contains", "regex", "in_list"]

# FPM/CGI workers serve requests; artisan and `serve` invocations are
# command-line runners.
DEFAULT_RULES: List[Dict[str, Any]] = [
    {
        "priority": 100,
        "tier": "web",
        "match_field": "name",
        "match_type": "contains",
        "patterns": "fpm",
        "comment": "php-fpm master and pool workers",
    },
    {
        "priority": 95,
        "tier": "web",
        "match_field": "name",
        "match_type": "contains",
        "patterns": "cgi",
        "comment": "php-cgi / php-cgi.exe",
    },
    {
        "priority": 90,
        "tier": "web",
        "match_field": "cmdline",
        "match_type": "contains",
        "patterns": "php-fpm",
        "comment": "FPM started through a generic php binary",
    },
    {
        "priority": 50,
        "tier": "cli",
        "match_field": "cmdline",
        "match_type": "contains",
        "patterns": "artisan",
        "comment": "artisan commands and queue workers",
    },
    {
        "priority": 40,
        "tier": "cli",
        "match_field": "cmdline",
        "match_type": "contains",
        "patterns": "serve",
        "comment": "development server",
    },
]


def _non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value,
        )
    return value


def validate_server_config(server_data: Dict[str, Any]) -> ServerConfig:
    """
    Validate and create a ServerConfig from raw `[server]` data.

    Raises:
        ValidationError: If validation fails
    """
    host = _non_empty_string(server_data.get("host", "127.0.0.1"), "server.host")
    port = validate_positive_integer(
        server_data.get("port", 8888),
        min_value=1,
        max_value=65535,
        field_name="server.port",
    )
    cors_origins = validate_string_list(
        server_data.get("cors_origins", ["http://localhost:3000"]),
        field_name="server.cors_origins",
    )
    return ServerConfig(host=host, port=port, cors_origins=cors_origins)


def validate_monitor_config(monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from raw `[monitor]` data.

    Raises:
        ValidationError: If validation fails
    """
    interval_seconds = validate_positive_float(
        monitor_data.get("interval_seconds", 5.0),
        min_value=0.1,  # 100ms minimum
        max_value=3600.0,
        field_name="monitor.interval_seconds",
    )

    runtime_marker = _non_empty_string(
        monitor_data.get("runtime_marker", "php"), "monitor.runtime_marker"
    )

    control_host = _non_empty_string(
        monitor_data.get("control_host", "127.0.0.1"), "monitor.control_host"
    )

    control_port = validate_positive_integer(
        monitor_data.get("control_port", 9000),
        min_value=1,
        max_value=65535,
        field_name="monitor.control_port",
    )

    probe_timeout = validate_positive_float(
        monitor_data.get("probe_timeout", 0.1),
        min_value=0.001,
        max_value=5.0,
        field_name="monitor.probe_timeout",
    )

    classification_cache_size = validate_positive_integer(
        monitor_data.get("classification_cache_size", 4096),
        min_value=16,
        max_value=1048576,
        field_name="monitor.classification_cache_size",
    )

    return MonitorConfig(
        interval_seconds=interval_seconds,
        runtime_marker=runtime_marker.lower(),
        control_host=control_host,
        control_port=control_port,
        probe_timeout=probe_timeout,
        classification_cache_size=classification_cache_size,
    )


def validate_watchdog_config(watchdog_data: Dict[str, Any]) -> WatchdogConfig:
    """
    Validate and create a WatchdogConfig from raw `[watchdog]` data.

    Raises:
        ValidationError: If validation fails
    """
    cpu_threshold = validate_positive_integer(
        watchdog_data.get("cpu_threshold", 50),
        min_value=1,
        # Summed over all workers, so it may exceed 100 on multi-core hosts.
        max_value=100000,
        field_name="watchdog.cpu_threshold",
    )

    log_path = watchdog_data.get("log_path", "")
    if not isinstance(log_path, str):
        raise ValidationError(
            "watchdog.log_path must be a string",
            field_name="watchdog.log_path",
            value=log_path,
        )

    cooldown_seconds = validate_positive_float(
        watchdog_data.get("cooldown_seconds", 60.0),
        min_value=0.0,
        max_value=86400.0,
        field_name="watchdog.cooldown_seconds",
    )

    incident_ttl_seconds = validate_positive_float(
        watchdog_data.get("incident_ttl_seconds", 300.0),
        min_value=1.0,
        max_value=86400.0,
        field_name="watchdog.incident_ttl_seconds",
    )

    tail_lines = validate_positive_integer(
        watchdog_data.get("tail_lines", 15),
        min_value=1,
        max_value=1000,
        field_name="watchdog.tail_lines",
    )

    tail_max_bytes = validate_positive_integer(
        watchdog_data.get("tail_max_bytes", 20000),
        min_value=256,
        max_value=10 * 1024 * 1024,
        field_name="watchdog.tail_max_bytes",
    )

    return WatchdogConfig(
        cpu_threshold=cpu_threshold,
        log_path=log_path,
        cooldown_seconds=cooldown_seconds,
        incident_ttl_seconds=incident_ttl_seconds,
        tail_lines=tail_lines,
        tail_max_bytes=tail_max_bytes,
    )


def validate_store_config(store_data: Dict[str, Any]) -> StoreConfig:
    """
    Validate and create a StoreConfig from raw `[store]` data.

    Raises:
        ValidationError: If validation fails
    """
    capacity = validate_positive_integer(
        store_data.get("capacity", 100),
        min_value=1,
        max_value=100000,
        field_name="store.capacity",
    )
    return StoreConfig(capacity=capacity)


def validate_injector_config(injector_data: Dict[str, Any]) -> InjectorConfig:
    """
    Validate and create an InjectorConfig from raw `[injector]` data.

    Raises:
        ValidationError: If validation fails
    """
    probe_timeout = validate_positive_float(
        injector_data.get("probe_timeout", 0.1),
        min_value=0.01,
        max_value=5.0,
        field_name="injector.probe_timeout",
    )
    slow_query_threshold_ms = validate_positive_float(
        injector_data.get("slow_query_threshold_ms", 50.0),
        min_value=0.0,
        field_name="injector.slow_query_threshold_ms",
    )
    return InjectorConfig(
        probe_timeout=probe_timeout,
        slow_query_threshold_ms=slow_query_threshold_ms,
    )


def validate_rules_config(rules_data: List[Dict[str, Any]]) -> List[TierRuleConfig]:
    """
    Validate and create a priority-sorted list of TierRuleConfig.

    Args:
        rules_data: Raw rule dictionaries from rules.toml

    Returns:
        Validated rules, highest priority first

    Raises:
        ValidationError: If any rule is invalid
    """
    if not isinstance(rules_data, list):
        raise ValidationError("rules must be a list of tables", field_name="rules", value=rules_data)

    rules: List[TierRuleConfig] = []
    for i, rule_data in enumerate(rules_data):
        prefix = f"rules[{i}]"
        if not isinstance(rule_data, dict):
            raise ValidationError(f"{prefix} must be a table", field_name=prefix, value=rule_data)

        priority = validate_positive_integer(
            rule_data.get("priority", 0),
            min_value=0,
            max_value=10000,
            field_name=f"{prefix}.priority",
        )
        tier = validate_enum_choice(
            rule_data.get("tier"), choices=VALID_TIERS, field_name=f"{prefix}.tier"
        )
        match_field = validate_enum_choice(
            rule_data.get("match_field", "name"),
            choices=VALID_MATCH_FIELDS,
            field_name=f"{prefix}.match_field",
        )
        match_type = validate_enum_choice(
            rule_data.get("match_type", "contains"),
            choices=VALID_MATCH_TYPES,
            field_name=f"{prefix}.match_type",
        )

        patterns = rule_data.get("patterns", rule_data.get("pattern", ""))
        if match_type == "in_list":
            if isinstance(patterns, str):
                patterns = [patterns]
            patterns = validate_string_list(patterns, field_name=f"{prefix}.patterns")
            if not patterns:
                raise ValidationError(
                    f"{prefix}.patterns must not be empty",
                    field_name=f"{prefix}.patterns",
                    value=patterns,
                )
        elif match_type == "regex":
            patterns = validate_regex_pattern(patterns, field_name=f"{prefix}.patterns")
        else:
            patterns = _non_empty_string(patterns, f"{prefix}.patterns")

        rules.append(
            TierRuleConfig(
                priority=priority,
                tier=tier,
                match_field=match_field,
                match_type=match_type,
                patterns=patterns,
                comment=str(rule_data.get("comment", "")),
            )
        )

    rules.sort(key=lambda r: r.priority, reverse=True)
    logger.debug(f"Validated {len(rules)} tier rules")
    return rules


def default_rules() -> List[TierRuleConfig]:
    """Return the built-in tier rules."""
    return validate_rules_config([dict(rule) for rule in DEFAULT_RULES])
