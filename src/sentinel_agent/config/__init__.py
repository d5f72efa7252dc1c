"""
Configuration management for the sentinel_agent package.

This module provides a clean interface for loading, validating, and accessing
configuration data from TOML files with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    build_config,
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import (
    get_rules_path,
    load_main_config,
    load_rules_config,
    load_toml_file,
)
from .validators import (
    default_rules,
    validate_injector_config,
    validate_monitor_config,
    validate_rules_config,
    validate_server_config,
    validate_store_config,
    validate_watchdog_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "build_config",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "load_rules_config",
    "get_rules_path",
    "default_rules",
    "validate_server_config",
    "validate_monitor_config",
    "validate_watchdog_config",
    "validate_store_config",
    "validate_injector_config",
    "validate_rules_config",
]
