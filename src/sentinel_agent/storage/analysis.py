"""
Aggregations over performance entries, computed with polars.

This module ranks the recorded requests the way the dashboard presents them:
slowest requests, requests issuing the most queries, the largest memory
consumers and the individual slow SQL statements.
"""

import logging
from typing import Any, Dict, List, Sequence

import polars as pl

from ..models.telemetry import PerformanceEntry

logger = logging.getLogger(__name__)


def _requests_frame(entries: Sequence[PerformanceEntry]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "method": [e.method for e in entries],
            "uri": [e.uri for e in entries],
            "duration_ms": [float(e.duration_ms) for e in entries],
            "memory_mb": [float(e.memory_mb) for e in entries],
            "query_count": [int(e.query_count) for e in entries],
            "timestamp": [e.timestamp for e in entries],
        },
        schema={
            "method": pl.Utf8,
            "uri": pl.Utf8,
            "duration_ms": pl.Float64,
            "memory_mb": pl.Float64,
            "query_count": pl.Int64,
            "timestamp": pl.Utf8,
        },
    )


def _slow_queries_frame(entries: Sequence[PerformanceEntry]) -> pl.DataFrame:
    rows = [
        (e.uri, q.sql, float(q.duration_ms))
        for e in entries
        for q in e.slow_queries
    ]
    return pl.DataFrame(
        {
            "uri": [r[0] for r in rows],
            "sql": [r[1] for r in rows],
            "duration_ms": [r[2] for r in rows],
        },
        schema={"uri": pl.Utf8, "sql": pl.Utf8, "duration_ms": pl.Float64},
    )


def _top(df: pl.DataFrame, column: str, limit: int) -> List[Dict[str, Any]]:
    if df.is_empty():
        return []
    return df.sort(column, descending=True, maintain_order=True).head(limit).to_dicts()


def analyze_performance(
    entries: Sequence[PerformanceEntry], limit: int = 5, query_limit: int = 10
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Rank performance entries for the summary view.

    Args:
        entries: Entries from the log file and/or the in-memory store.
        limit: Number of requests kept in each request ranking.
        query_limit: Number of slow queries kept.

    Returns:
        Dictionary with ``slowest_requests``, ``heaviest_queries``,
        ``memory_hogs`` and ``slow_queries``, each sorted descending. Ties
        keep their original order.
    """
    requests = _requests_frame(entries)
    queries = _slow_queries_frame(entries)

    summary = {
        "slowest_requests": _top(requests, "duration_ms", limit),
        "heaviest_queries": _top(requests, "query_count", limit),
        "memory_hogs": _top(requests, "memory_mb", limit),
        "slow_queries": _top(queries, "duration_ms", query_limit),
    }
    logger.debug(
        f"Analyzed {requests.height} requests and {queries.height} slow queries"
    )
    return summary
