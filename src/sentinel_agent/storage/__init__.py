"""
Storage for performance entries reported by instrumented applications.

- PerformanceStore: bounded in-memory FIFO shared by ingest and readers
- analyze_performance: polars-based rankings for the summary endpoint
"""

from .analysis import analyze_performance
from .performance_store import PerformanceStore, TIMESTAMP_FORMAT

__all__ = [
    "PerformanceStore",
    "TIMESTAMP_FORMAT",
    "analyze_performance",
]
