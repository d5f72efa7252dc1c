"""
Bounded tail reads of log files.
"""

import logging
import os
from typing import List

logger = logging.getLogger(__name__)


def read_last_lines(path: str, n: int = 15, max_bytes: int = 20000) -> List[str]:
    """
    Return up to the last ``n`` lines of a file, reading at most ``max_bytes``.

    When the file is larger than ``max_bytes`` the read starts mid-file and the
    first, partial line is discarded. Trailing newlines are stripped. A missing,
    unreadable or empty path yields an empty list; this is a soft failure.
    """
    if not path:
        logger.warning("No log path configured, skipping tail read")
        return []

    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            truncated = size > max_bytes
            if truncated:
                f.seek(size - max_bytes)
            data = f.read()
    except OSError as e:
        logger.warning(f"Could not read log tail from {path}: {e}")
        return []

    lines = data.decode("utf-8", errors="replace").splitlines()
    if truncated and lines:
        lines = lines[1:]
    return lines[-n:] if n > 0 else []
