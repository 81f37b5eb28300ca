"""Cache entry repository - durable storage of cached query results."""

import json
from datetime import datetime

from loguru import logger

from app.models.cache import CacheEntry, EntryClass
from app.repositories.base import BaseRepository

_COLUMNS = """
    cache_key, dataset_id, entry_class, filter, start_period, end_period,
    last_n_observations, observation_count, data, overflow_ref, ttl_seconds,
    cached_at, accessed_at, access_count
"""


def _to_entry(row: tuple) -> CacheEntry:
    """Map a cache_entry row onto a CacheEntry."""
    return CacheEntry(
        key=row[0],
        dataset_id=row[1],
        entry_class=EntryClass(row[2]),
        filter=row[3],
        start_period=row[4],
        end_period=row[5],
        last_n_observations=row[6],
        observation_count=row[7],
        records=json.loads(row[8]) if row[8] is not None else None,
        overflow_ref=row[9],
        ttl_seconds=row[10],
        cached_at=row[11],
        accessed_at=row[12],
        access_count=row[13],
    )


class CacheEntryRepository(BaseRepository):
    """Repository for cache_entry rows."""

    def get(self, key: str) -> CacheEntry | None:
        """Load an entry by key, expired or not."""
        row = self.fetchone(f"SELECT {_COLUMNS} FROM cache_entry WHERE cache_key = ?", [key])
        return _to_entry(row) if row else None

    def upsert(self, entry: CacheEntry) -> None:
        """Insert or replace an entry (last write wins)."""
        data = json.dumps(entry.records) if entry.records is not None else None
        self.write(
            f"INSERT OR REPLACE INTO cache_entry ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                entry.key,
                entry.dataset_id,
                str(entry.entry_class),
                entry.filter,
                entry.start_period,
                entry.end_period,
                entry.last_n_observations,
                entry.observation_count,
                data,
                entry.overflow_ref,
                entry.ttl_seconds,
                entry.cached_at,
                entry.accessed_at,
                entry.access_count,
            ],
        )
        logger.debug("Entry saved: {} ({} obs)", entry.key, entry.observation_count)

    def touch(self, key: str, now: datetime) -> None:
        """Bump access stats."""
        self.write(
            "UPDATE cache_entry SET accessed_at = ?, access_count = access_count + 1 WHERE cache_key = ?",
            [now, key],
        )

    def delete(self, key: str) -> list[str | None]:
        """Delete an entry; returns overflow refs of removed rows."""
        rows = self.write("DELETE FROM cache_entry WHERE cache_key = ? RETURNING overflow_ref", [key]).fetchall()
        return [r[0] for r in rows]

    def delete_dataset(self, dataset_id: str) -> list[str | None]:
        """Delete all entries of a dataset; returns overflow refs of removed rows."""
        rows = self.write(
            "DELETE FROM cache_entry WHERE dataset_id = ? RETURNING overflow_ref",
            [dataset_id],
        ).fetchall()
        logger.info("Deleted {} entries for {}", len(rows), dataset_id)
        return [r[0] for r in rows]

    def delete_expired(self, now: datetime) -> list[str | None]:
        """Delete rows whose TTL has elapsed; returns their overflow refs."""
        rows = self.write(
            "DELETE FROM cache_entry WHERE cached_at + to_seconds(ttl_seconds) <= ? RETURNING overflow_ref",
            [now],
        ).fetchall()
        if rows:
            logger.info("Evicted {} expired entries", len(rows))
        return [r[0] for r in rows]

    def count(self) -> int:
        """Number of stored entries."""
        return self.fetchone("SELECT COUNT(*) FROM cache_entry")[0]

    def keys_for(self, dataset_id: str) -> list[str]:
        """Keys stored for a dataset."""
        rows = self.fetchall("SELECT cache_key FROM cache_entry WHERE dataset_id = ? ORDER BY cache_key", [dataset_id])
        return [r[0] for r in rows]
