"""
Command-line interface for the Sentinel agent.

This module provides the ``sentinel-agent`` entry point: it parses
command-line arguments, loads and validates the configuration, wires the
agent's components and serves the HTTP control surface with uvicorn.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from ..config import get_config, set_config_path
from ..orchestration import build_services
from ..server import create_app
from ..validation import (
    ValidationError,
    handle_cli_error,
    validate_enum_choice,
    validate_positive_integer,
)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Runtime observability agent for PHP/Laravel applications."
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.toml. Defaults to conf/config.toml in the repository.",
    )
    parser.add_argument("--host", type=str, help="Override [server].host.")
    parser.add_argument("--port", type=int, help="Override [server].port.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help=f"Logging level, one of {', '.join(LOG_LEVELS)}.",
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Do not poll processes in the background (telemetry stays at zero).",
    )
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
    )


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the agent.

    Raises:
        SystemExit: On invalid arguments or configuration errors.
    """
    args = build_parser().parse_args(argv)

    try:
        log_level = validate_enum_choice(
            args.log_level, LOG_LEVELS, field_name="--log-level", case_sensitive=False
        )
    except ValidationError as e:
        setup_logging("INFO")
        handle_cli_error(error=e, context="argument validation", exit_code=2, logger=logger)
    setup_logging(log_level)

    if args.config is not None:
        set_config_path(args.config)

    # Load application configuration
    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    try:
        if args.host:
            app_config.server.host = args.host
        if args.port is not None:
            app_config.server.port = validate_positive_integer(
                args.port, min_value=1, max_value=65535, field_name="--port"
            )
    except ValidationError as e:
        handle_cli_error(error=e, context="argument validation", exit_code=2, logger=logger)

    services = build_services(app_config)
    app = create_app(services, start_scheduler=not args.no_scheduler)

    logger.info(
        f"Starting Sentinel agent on {app_config.server.host}:{app_config.server.port}"
    )
    # uvicorn installs its own SIGINT/SIGTERM handlers and runs the lifespan,
    # which starts and stops the polling scheduler.
    uvicorn.run(
        app,
        host=app_config.server.host,
        port=app_config.server.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main_cli()
