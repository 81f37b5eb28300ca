"""Durable tier - DuckDB-backed entries, payloads inline or in overflow."""

import asyncio
from collections.abc import Callable
from datetime import datetime

import duckdb
from loguru import logger

from app.models.cache import CacheEntry, Tier
from app.models.common import utcnow
from app.repositories.cache import CacheEntryRepository
from app.services.cache.errors import StoreUnavailable
from app.services.cache.tiers.base import TierHit
from app.services.cache.tiers.overflow import OverflowTier
from settings import OVERFLOW_THRESHOLD, STORE_TIMEOUT


class DurableTier:
    """Source of truth across restarts.

    Expired rows stay in the table but read as absent. Every call runs in a
    worker thread and is bounded by ``timeout``; timeouts, database errors
    and payloads that cannot be serialized surface as StoreUnavailable.
    """

    name = "durable"

    def __init__(
        self,
        entries: CacheEntryRepository,
        overflow: OverflowTier,
        overflow_threshold: int = OVERFLOW_THRESHOLD,
        timeout: float = STORE_TIMEOUT,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._entries = entries
        self._overflow = overflow
        self._threshold = overflow_threshold
        self._timeout = timeout
        self._clock = clock

    async def _run(self, fn: Callable, *args):
        """Run a blocking call off the event loop, bounded by the timeout."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), self._timeout)
        except TimeoutError as e:
            raise StoreUnavailable(f"Durable {fn.__name__} timed out after {self._timeout}s") from e
        except duckdb.Error as e:
            raise StoreUnavailable(f"Durable {fn.__name__} failed: {e}") from e
        except (TypeError, ValueError) as e:
            raise StoreUnavailable(f"Durable {fn.__name__} rejected payload: {e}") from e

    async def get(self, key: str) -> TierHit | None:
        return await self._run(self._get, key)

    async def put(self, entry: CacheEntry) -> None:
        await self._run(self._put, entry)

    async def delete(self, key: str) -> int:
        return await self._run(self._delete, key)

    async def delete_dataset(self, dataset_id: str) -> int:
        return await self._run(self._delete_dataset, dataset_id)

    async def evict_expired(self) -> int:
        """Physically remove expired rows."""
        return await self._run(self._evict_expired)

    async def count(self) -> int:
        return await self._run(self._entries.count)

    def _get(self, key: str) -> TierHit | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now):
            logger.debug("Durable entry expired: {} (cached {})", key, entry.cached_at)
            return None

        tier = Tier.DURABLE
        if entry.overflow_ref is not None:
            entry = entry.with_records(self._overflow.fetch(entry.overflow_ref))
            tier = Tier.DURABLE_OVERFLOW

        try:
            self._entries.touch(key, now)
        except duckdb.Error as e:
            logger.debug("Access stats update failed for {}: {}", key, e)

        logger.debug("Durable hit: {} ({})", key, tier)
        return TierHit(entry, tier)

    def _put(self, entry: CacheEntry) -> None:
        if entry.records is None:
            raise ValueError(f"Durable tier needs inline records for {entry.key!r}")

        previous = self._entries.get(entry.key)
        row = entry
        if entry.observation_count > self._threshold:
            logger.warning(
                "Large dataset cached: {} observations for {}, storing in overflow",
                entry.observation_count,
                entry.dataset_id,
            )
            ref = self._overflow.store(self._overflow.path_for(entry.dataset_id, entry.key), entry.records)
            row = entry.with_overflow(ref)

        try:
            self._entries.upsert(row)
        except duckdb.Error:
            if row.overflow_ref and (previous is None or previous.overflow_ref != row.overflow_ref):
                self._discard_blob(row.overflow_ref)
            raise

        if previous is not None and previous.overflow_ref and previous.overflow_ref != row.overflow_ref:
            self._discard_blob(previous.overflow_ref)

    def _delete(self, key: str) -> int:
        refs = self._entries.delete(key)
        for ref in refs:
            if ref:
                self._overflow.delete(ref)
        return len(refs)

    def _delete_dataset(self, dataset_id: str) -> int:
        refs = self._entries.delete_dataset(dataset_id)
        self._overflow.delete_dataset(dataset_id)
        return len(refs)

    def _evict_expired(self) -> int:
        refs = self._entries.delete_expired(self._clock())
        for ref in refs:
            if ref:
                self._discard_blob(ref)
        return len(refs)

    def _discard_blob(self, ref: str) -> None:
        try:
            self._overflow.delete(ref)
        except StoreUnavailable as e:
            logger.warning("Orphaned overflow payload {}: {}", ref, e)
