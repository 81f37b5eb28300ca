"""Cache manager - tier fallback, write-through and fetch on miss."""

import time
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from loguru import logger

from app.models.cache import CacheEntry, CacheQuery, Tier
from app.models.common import utcnow
from app.services.cache.errors import StoreUnavailable
from app.services.cache.freshness import FreshnessPolicy
from app.services.cache.keys import query_key
from app.services.cache.recorder import AccessRecorder
from app.services.cache.tiers import CacheTier


class Fetcher(Protocol):
    """Upstream source of records; may raise UpstreamError or RateLimited."""

    async def fetch(self, query: CacheQuery) -> list[dict]: ...


class CacheManager:
    """Walks an ordered chain of tiers, fastest first.

    A hit in one tier is promoted into every tier above it. Tier failures
    count as misses; only fetcher errors reach the caller.
    """

    def __init__(
        self,
        tiers: list[CacheTier],
        recorder: AccessRecorder,
        freshness: FreshnessPolicy | None = None,
        fetcher: Fetcher | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.tiers = tiers
        self.fetcher = fetcher
        self._recorder = recorder
        self._freshness = freshness or FreshnessPolicy(clock=clock)
        self._clock = clock

    async def lookup(self, query: CacheQuery) -> list[dict] | None:
        """Cached records for a query, or None on a full miss."""
        key = query_key(query)
        started = time.perf_counter()

        for i, tier in enumerate(self.tiers):
            try:
                hit = await tier.get(key)
            except StoreUnavailable as e:
                logger.warning("{} tier unavailable for {}: {}", tier.name, key, e)
                continue
            if hit is None:
                continue

            for upper in self.tiers[:i]:
                await self._put(upper, hit.entry)

            self._recorder.record(key, query.dataset_id, hit.tier, self._elapsed_ms(started))
            return hit.records

        self._recorder.record(key, query.dataset_id, Tier.MISS, self._elapsed_ms(started))
        logger.debug("Cache miss: {}", key)
        return None

    async def store(self, query: CacheQuery, records: list[dict]) -> CacheEntry:
        """Write records through every tier, slowest first."""
        key = query_key(query)
        ttl = self._freshness.ttl_for(query.entry_class, query.start_period)
        now = self._clock()
        entry = CacheEntry(
            key=key,
            dataset_id=query.dataset_id.strip(),
            records=list(records),
            entry_class=query.entry_class,
            filter=query.filter,
            start_period=query.start_period,
            end_period=query.end_period,
            last_n_observations=query.last_n_observations,
            ttl_seconds=int(ttl.total_seconds()),
            cached_at=now,
            accessed_at=now,
        )

        for tier in reversed(self.tiers):
            await self._put(tier, entry)

        logger.info("Cached {} ({} records, ttl {})", key, entry.observation_count, ttl)
        return entry

    async def lookup_or_fetch(self, query: CacheQuery, fetcher: Fetcher | None = None) -> list[dict]:
        """Cached records, or fresh ones from the fetcher written back to the cache."""
        records = await self.lookup(query)
        if records is not None:
            return records

        fetcher = fetcher or self.fetcher
        if fetcher is None:
            raise RuntimeError("No fetcher configured for cache misses")

        records = await fetcher.fetch(query)
        await self.store(query, records)
        return records

    async def _put(self, tier: CacheTier, entry: CacheEntry) -> bool:
        try:
            await tier.put(entry)
            return True
        except StoreUnavailable as e:
            logger.warning("Write to {} tier failed for {}: {}", tier.name, entry.key, e)
            return False

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
