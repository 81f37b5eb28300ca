"""Access event repository - append-only lookup log."""

from datetime import datetime

import polars as pl
from loguru import logger

from app.models.cache import AccessEvent
from app.repositories.base import BaseRepository


class AccessEventRepository(BaseRepository):
    """Repository for cache_access_event rows."""

    def insert_many(self, events: list[AccessEvent]) -> int:
        """Append a batch of events."""
        if not events:
            return 0

        events_df = pl.DataFrame(
            {
                "cache_key": [e.key for e in events],
                "dataset_id": [e.dataset_id for e in events],
                "tier": [str(e.tier) for e in events],
                "response_time_ms": [float(e.response_time_ms) for e in events],
                "accessed_at": [e.timestamp for e in events],
            },
            schema={
                "cache_key": pl.Utf8,
                "dataset_id": pl.Utf8,
                "tier": pl.Utf8,
                "response_time_ms": pl.Float64,
                "accessed_at": pl.Datetime("us"),
            },
        )
        cur = self._db.cursor()
        with self._db.write_lock:
            cur.register("events_df", events_df)
            try:
                cur.execute(
                    """
                    INSERT INTO cache_access_event (cache_key, dataset_id, tier, response_time_ms, accessed_at)
                    SELECT cache_key, dataset_id, tier, response_time_ms, accessed_at FROM events_df
                    """
                )
            finally:
                cur.unregister("events_df")
        logger.debug("Saved {} access events", len(events))
        return len(events)

    def hit_counts(self, since: datetime) -> tuple[int, int, float | None]:
        """(hits, misses, average response time) since a point in time."""
        row = self.fetchone(
            """
            SELECT
                COUNT(*) FILTER (WHERE tier <> 'miss'),
                COUNT(*) FILTER (WHERE tier = 'miss'),
                AVG(response_time_ms)
            FROM cache_access_event
            WHERE accessed_at >= ?
            """,
            [since],
        )
        return int(row[0]), int(row[1]), row[2]

    def top_dataflows(self, since: datetime, limit: int = 10) -> list[tuple[str, int]]:
        """Dataflows ranked by lookups since a point in time."""
        rows = self.fetchall(
            f"""
            SELECT dataset_id, COUNT(*) AS cnt
            FROM cache_access_event
            WHERE accessed_at >= ?
            GROUP BY dataset_id
            ORDER BY cnt DESC, dataset_id ASC
            LIMIT {int(limit)}
            """,
            [since],
        )
        return [(r[0], int(r[1])) for r in rows]

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete events before the cutoff."""
        rows = self.write("DELETE FROM cache_access_event WHERE accessed_at < ? RETURNING 1", [cutoff]).fetchall()
        if rows:
            logger.info("Purged {} access events older than {}", len(rows), cutoff)
        return len(rows)

    def count(self) -> int:
        """Number of stored events."""
        return self.fetchone("SELECT COUNT(*) FROM cache_access_event")[0]
