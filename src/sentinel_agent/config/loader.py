"""
Reading of the agent's TOML files.

``config.toml`` holds the ``[server]``, ``[monitor]``, ``[watchdog]``,
``[store]`` and ``[injector]`` sections; its optional ``[paths].rules_config``
names a second file with the ``[[rules]]`` tables that sort PHP processes
into the web and cli tiers. Validation happens in ``validators``.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "agent configuration") -> Dict[str, Any]:
    """
    Parse one TOML file of the agent.

    Args:
        file_path: Location of the file
        description: What the file holds, used in log and error messages

    Raises:
        FileNotFoundError: The file does not exist
        tomllib.TOMLDecodeError: The file is not valid TOML
    """
    if not file_path.is_file():
        logger.error(f"Missing {description}: {file_path}")
        raise FileNotFoundError(f"Missing {description}: {file_path}")

    logger.info(f"Reading {description} from {file_path}")
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description} {file_path}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """Read config.toml with the agent's server, monitor and watchdog settings."""
    return load_toml_file(config_path, "agent configuration")


def load_rules_config(rules_path: Path) -> List[Dict[str, Any]]:
    """
    Read the process tier rules.

    Returns:
        The raw ``[[rules]]`` tables; an empty list when the file has none
    """
    rules_data = load_toml_file(rules_path, "process tier rules")
    return rules_data.get("rules", [])


def get_rules_path(main_config_data: Dict[str, Any], config_dir: Path) -> Optional[Path]:
    """
    Resolve the rules file path from the `[paths]` section.

    Relative paths are resolved against the directory of the main config.
    Returns None when no rules file is configured.
    """
    rules_file = main_config_data.get("paths", {}).get("rules_config")
    if not rules_file:
        return None
    return config_dir / rules_file
