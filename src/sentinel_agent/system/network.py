"""
Network helpers for liveness checks.
"""

import logging
import socket

logger = logging.getLogger(__name__)


def probe_tcp_port(host: str, port: int, timeout: float = 0.1) -> bool:
    """Return True if a TCP connection to ``host:port`` succeeds within ``timeout``.

    Used as a secondary signal that PHP-FPM is alive when no worker process
    was seen (e.g. FPM running in a container with a published port).
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        logger.debug(f"TCP probe {host}:{port} failed: {e}")
        return False
