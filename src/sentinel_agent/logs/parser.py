"""
Tolerant parser for Laravel log lines.

A Laravel (Monolog) line looks like::

    [2024-01-01 12:00:00] local.ERROR: Something failed {"exception": "..."}

The parser never raises: lines without the timestamp prefix give None, and a
message whose JSON cannot be decoded simply has no payload.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from ..models.logs import ParsedLogLine

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(
    r"^\[(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\]\s*"
    r"(?:(?P<environment>[\w-]+)\.(?P<level>[A-Za-z]+):\s?)?"
    r"(?P<message>.*)$",
    re.DOTALL,
)

_decoder = json.JSONDecoder()


def extract_json_object(text: str, start: int = 0) -> Optional[Dict[str, Any]]:
    """
    Decode the JSON object beginning at the first unescaped '{' after ``start``.

    Text following the object is ignored. Returns None if there is no object
    or it does not decode.
    """
    i = text.find("{", start)
    while i != -1 and i > 0 and text[i - 1] == "\\":
        i = text.find("{", i + 1)
    if i == -1:
        return None
    try:
        value, _ = _decoder.raw_decode(text, i)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def parse_log_line(line: str) -> Optional[ParsedLogLine]:
    """Split a Laravel log line into timestamp, environment, level, message and payload."""
    match = _LINE_RE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    message = match.group("message")
    return ParsedLogLine(
        timestamp=match.group("timestamp"),
        environment=match.group("environment") or "",
        level=(match.group("level") or "").upper(),
        message=message,
        payload=extract_json_object(message),
    )
