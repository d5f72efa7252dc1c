"""
System interaction utilities: shared-state locking and liveness probes.
"""

from .locks import ReadWriteLock
from .network import probe_tcp_port

__all__ = [
    "ReadWriteLock",
    "probe_tcp_port",
]
