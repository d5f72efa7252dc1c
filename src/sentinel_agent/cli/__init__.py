"""
Command-line interface for the agent.
"""

from .main import main_cli

__all__ = ["main_cli"]
