"""
Route table of a Laravel project, read through ``php artisan route:list``.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from ..models.logs import RouteEntry
from ..validation import RouteListError

logger = logging.getLogger(__name__)

ROUTE_LIST_ARGS = ["artisan", "route:list", "--json"]
ROUTE_LIST_TIMEOUT = 30.0

_decoder = json.JSONDecoder()


def get_routes(
    project_path: Union[str, Path],
    php_binary: str = "php",
    timeout: float = ROUTE_LIST_TIMEOUT,
) -> List[RouteEntry]:
    """
    Run ``php artisan route:list --json`` in the project and parse its output.

    Artisan may print deprecation notices before the JSON document; they are
    skipped.

    Raises:
        RouteListError: PHP could not be run, artisan failed or timed out,
            or its output is not a JSON list of routes.
    """
    project = Path(project_path)
    command = [php_binary, *ROUTE_LIST_ARGS]
    logger.debug(f"Executing command: '{' '.join(command)}' in '{project}'")
    try:
        process = subprocess.run(
            command,
            cwd=project,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise RouteListError(f"Cannot run '{php_binary}' in {project}: {e}", str(project)) from e
    except subprocess.TimeoutExpired as e:
        raise RouteListError(f"artisan route:list timed out after {timeout}s", str(project)) from e
    except OSError as e:
        raise RouteListError(f"Cannot run artisan in {project}: {e}", str(project)) from e

    if process.returncode != 0:
        stderr = process.stderr.strip().splitlines()
        detail = stderr[-1] if stderr else f"exit code {process.returncode}"
        raise RouteListError(f"artisan route:list failed: {detail}", str(project))

    raw_routes = _decode_route_list(process.stdout)
    if raw_routes is None:
        raise RouteListError("artisan route:list printed no JSON list", str(project))

    try:
        routes = [RouteEntry.from_dict(route) for route in raw_routes]
    except TypeError as e:
        raise RouteListError(f"Unexpected route in artisan output: {e}", str(project)) from e
    logger.info(f"Read {len(routes)} routes from {project}")
    return routes


def _decode_route_list(output: str) -> Optional[list]:
    # Notices may themselves contain '[', so try each candidate in turn.
    start = output.find("[")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(output, start)
        except ValueError:
            value = None
        if isinstance(value, list):
            return value
        start = output.find("[", start + 1)
    return None
