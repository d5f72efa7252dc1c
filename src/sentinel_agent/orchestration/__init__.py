"""
Orchestration of the agent's long-lived components.
"""

from .scheduler import PollingScheduler
from .shared_state import AgentServices, build_services

__all__ = [
    "AgentServices",
    "PollingScheduler",
    "build_services",
]
