"""
Readers over a Laravel project's application log.

All readers work on the tail of ``storage/logs/laravel.log`` and degrade to
an empty result when the file is missing or unreadable.
"""

import dataclasses
import logging
from collections import deque
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..models.logs import DeadlockEntry, ParsedLogLine
from ..models.telemetry import PerformanceEntry
from .parser import extract_json_object, parse_log_line

logger = logging.getLogger(__name__)

PERF_TAG = "[SENTINEL_PERF]"
DEADLOCK_MARKERS = ("Deadlock found", "Lock wait timeout exceeded")

PERFORMANCE_SCAN_LINES = 2000
DEADLOCK_SCAN_LINES = 5000


def laravel_log_path(project_path: Union[str, Path]) -> Path:
    return Path(project_path) / "storage" / "logs" / "laravel.log"


def get_recent_logs(project_path: Union[str, Path], n: int = 50) -> List[str]:
    """Return the last ``n`` lines of the project's log, oldest first."""
    log_path = laravel_log_path(project_path)
    try:
        with open(log_path, "r", encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\r\n") for line in deque(f, maxlen=n)]
    except FileNotFoundError:
        logger.debug(f"Log file not found: {log_path}")
        return []
    except OSError as e:
        logger.warning(f"Could not read log file {log_path}: {e}")
        return []


def _split_line(line: str) -> Tuple[Optional[ParsedLogLine], str]:
    """Parse a log line; lines without the timestamp prefix keep their raw text."""
    parsed = parse_log_line(line)
    return parsed, (parsed.message if parsed is not None else line)


def get_performance_logs(project_path: Union[str, Path]) -> List[PerformanceEntry]:
    """
    Collect performance entries the application logged with the perf tag.

    The entry timestamp is taken from the log line prefix when present.
    Lines whose JSON is malformed or has unusable field types are skipped.
    """
    entries: List[PerformanceEntry] = []
    for line in get_recent_logs(project_path, PERFORMANCE_SCAN_LINES):
        if PERF_TAG not in line:
            continue
        parsed, message = _split_line(line)
        tag_index = message.find(PERF_TAG)
        if tag_index == -1:
            continue
        if parsed is not None and message.find("{") > tag_index:
            payload = parsed.payload
        else:
            payload = extract_json_object(message, tag_index + len(PERF_TAG))
        if payload is None:
            continue
        try:
            entry = PerformanceEntry.from_dict(payload)
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed performance line: {e}")
            continue
        if parsed is not None:
            entry = dataclasses.replace(entry, timestamp=parsed.timestamp)
        entries.append(entry)
    return entries


def get_deadlocks(project_path: Union[str, Path]) -> List[DeadlockEntry]:
    """Return database deadlock and lock-timeout errors found in the log."""
    deadlocks: List[DeadlockEntry] = []
    for line in get_recent_logs(project_path, DEADLOCK_SCAN_LINES):
        if not any(marker in line for marker in DEADLOCK_MARKERS):
            continue
        parsed, message = _split_line(line)
        if parsed is None:
            deadlocks.append(DeadlockEntry(timestamp="", message=line.strip()))
        else:
            deadlocks.append(
                DeadlockEntry(
                    timestamp=parsed.timestamp,
                    message=message.strip(),
                    level=parsed.level,
                )
            )
    return deadlocks
