"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import get_rules_path, load_main_config, load_rules_config
from .validators import (
    default_rules,
    validate_injector_config,
    validate_monitor_config,
    validate_rules_config,
    validate_server_config,
    validate_store_config,
    validate_watchdog_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

# This global variable will hold the single instance of the loaded AppConfig.
_CONFIG: Optional[AppConfig] = None

# Default path to the main configuration file, relative to this script's location.
# Overridden by tests and by the CLI `--config` flag.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears the cached configuration so the next get_config() reloads.

    Args:
        config_path: Path to the main config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def build_config(main_config_data: Dict[str, Any], config_dir: Optional[Path] = None,
                 source_path: Optional[str] = None) -> AppConfig:
    """
    Validate raw configuration data into an AppConfig.

    Args:
        main_config_data: Parsed config.toml contents (may be empty)
        config_dir: Directory used to resolve the rules file path
        source_path: Recorded on the result for diagnostics

    Raises:
        ValidationError: If any section fails validation
    """
    rules_path = get_rules_path(main_config_data, config_dir or Path.cwd())
    if rules_path is not None:
        rules = validate_rules_config(load_rules_config(rules_path))
    else:
        rules = default_rules()

    return AppConfig(
        server=validate_server_config(main_config_data.get("server", {})),
        monitor=validate_monitor_config(main_config_data.get("monitor", {})),
        watchdog=validate_watchdog_config(main_config_data.get("watchdog", {})),
        store=validate_store_config(main_config_data.get("store", {})),
        injector=validate_injector_config(main_config_data.get("injector", {})),
        rules=rules,
        source_path=source_path,
    )


def _load_config(config_path: Path) -> AppConfig:
    """
    Load the complete application configuration from TOML files.

    A missing main configuration file is not an error: the agent runs on
    built-in defaults, as a fresh install has no config yet.

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If TOML files are malformed
        FileNotFoundError: If a configured rules file is missing
    """
    if not config_path.exists():
        logger.warning(f"No configuration at {config_path}, using built-in defaults")
        return build_config({})

    try:
        main_config_data = load_main_config(config_path)
        app_config = build_config(
            main_config_data,
            config_dir=config_path.parent,
            source_path=str(config_path),
        )
        logger.info(
            f"Successfully loaded configuration with {len(app_config.rules)} tier rules"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If TOML files are malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "rules_count": len(_CONFIG.rules) if _CONFIG else 0,
    }
