"""
Process telemetry collectors.
"""

from .process_monitor import ProcessMonitor

__all__ = ["ProcessMonitor"]
