"""Cache service - the operations exposed to the calling layer."""

import asyncio

from loguru import logger

from app.models.cache import CacheQuery, CacheSummary
from app.services.cache.invalidator import Invalidator
from app.services.cache.manager import CacheManager
from app.services.cache.prewarmer import Prewarmer, WarmReport
from app.services.cache.recorder import AccessRecorder
from app.services.cache.stats import StatsAggregator


class CacheService:
    """Lookup, statistics, invalidation and warming over one cache."""

    def __init__(
        self,
        manager: CacheManager,
        stats: StatsAggregator,
        invalidator: Invalidator,
        prewarmer: Prewarmer,
        recorder: AccessRecorder,
    ):
        self._manager = manager
        self._stats = stats
        self._invalidator = invalidator
        self._prewarmer = prewarmer
        self._recorder = recorder
        logger.debug("CacheService initialized")

    async def lookup_or_fetch(self, query: CacheQuery) -> list[dict]:
        """Records for a query, from cache or upstream."""
        return await self._manager.lookup_or_fetch(query)

    async def lookup(self, query: CacheQuery) -> list[dict] | None:
        """Cached records only; None on a miss."""
        return await self._manager.lookup(query)

    async def get_statistics(self, window_hours: int = 24) -> CacheSummary:
        """Hit rate and popular dataflows over the window."""
        await asyncio.to_thread(self._recorder.flush)
        return await asyncio.to_thread(self._stats.summary, window_hours)

    async def invalidate(self, key: str) -> int:
        return await self._invalidator.invalidate(key)

    async def invalidate_dataset(self, dataset_id: str) -> int:
        return await self._invalidator.invalidate_dataset(dataset_id)

    async def warm(self, dataset_ids: list[str]) -> WarmReport:
        return await self._prewarmer.warm(dataset_ids)

    async def purge_events(self) -> int:
        """Drop access events past the retention window."""
        await asyncio.to_thread(self._recorder.flush)
        return await asyncio.to_thread(self._recorder.purge)
