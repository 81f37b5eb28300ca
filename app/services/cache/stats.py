"""Stats aggregator - hit rate and popular dataflows over a window."""

from collections.abc import Callable
from datetime import datetime, timedelta

import duckdb
from loguru import logger

from app.models.cache import CacheSummary, DataflowHits
from app.models.common import utcnow
from app.repositories.cache import AccessEventRepository, CacheEntryRepository

TOP_DATAFLOWS = 10


class StatsAggregator:
    """Summaries of the access log."""

    def __init__(
        self,
        events: AccessEventRepository,
        entries: CacheEntryRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._events = events
        self._entries = entries
        self._clock = clock

    def summary(self, window_hours: int = 24) -> CacheSummary:
        """Cache performance over the last ``window_hours``."""
        since = self._clock() - timedelta(hours=window_hours)
        try:
            hits, misses, avg_ms = self._events.hit_counts(since)
            top = self._events.top_dataflows(since, TOP_DATAFLOWS)
            total_cached = self._entries.count()
        except duckdb.Error as e:
            logger.warning("Cache statistics unavailable: {}", e)
            return CacheSummary(window_hours=window_hours)

        total = hits + misses
        summary = CacheSummary(
            window_hours=window_hours,
            total_cached_entries=total_cached,
            total_hits=hits,
            total_misses=misses,
            hit_rate=hits / total if total else 0.0,
            avg_response_time_ms=round(avg_ms, 2) if avg_ms is not None else None,
            top_dataflows=[DataflowHits(dataflow_id=d, hits=n) for d, n in top],
        )
        logger.debug("Summary ({}h): {} lookups, hit rate {:.2f}", window_hours, total, summary.hit_rate)
        return summary
