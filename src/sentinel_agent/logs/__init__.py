"""
Readers over a Laravel project: application log parsing and the route table.
"""

from .parser import extract_json_object, parse_log_line
from .reader import (
    get_deadlocks,
    get_performance_logs,
    get_recent_logs,
    laravel_log_path,
)
from .routes import get_routes

__all__ = [
    "extract_json_object",
    "get_deadlocks",
    "get_performance_logs",
    "get_recent_logs",
    "get_routes",
    "laravel_log_path",
    "parse_log_line",
]
