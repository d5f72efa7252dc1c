"""
CPU watchdog and log tail helpers.
"""

from .log_tail import read_last_lines
from .watchdog import Watchdog

__all__ = [
    "Watchdog",
    "read_last_lines",
]
