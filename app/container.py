"""Dependency container - owns the cache components and their lifecycle."""

from pathlib import Path

from loguru import logger

from app.repositories import AccessEventRepository, CacheEntryRepository, Database
from app.services.cache import (
    AccessRecorder,
    CacheManager,
    CacheService,
    DurableTier,
    Fetcher,
    FreshnessPolicy,
    Invalidator,
    MemoryTier,
    OverflowTier,
    Prewarmer,
    StatsAggregator,
)
from oecd_client import DataClient, set_api_config
from settings import (
    API_BASE_URL,
    API_MAX_CONCURRENT,
    API_TIMEOUT,
    DB_PATH,
    MEMORY_TTL,
    OVERFLOW_DIR,
    OVERFLOW_THRESHOLD,
    PREWARM_DELAY,
)


class Container:
    """Builds the cache once and tears it down on exit.

    Use as ``async with Container() as c: await c.cache.lookup_or_fetch(...)``.
    Without an explicit fetcher the container opens its own OECD client.
    """

    def __init__(
        self,
        db_path: str = DB_PATH,
        overflow_dir: Path | str = OVERFLOW_DIR,
        fetcher: Fetcher | None = None,
        memory_ttl: int = MEMORY_TTL,
        overflow_threshold: int = OVERFLOW_THRESHOLD,
        prewarm_delay: float = PREWARM_DELAY,
    ):
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else DataClient(max_concurrent=API_MAX_CONCURRENT)

        # Storage
        self.db = Database(db_path)
        self._entries = CacheEntryRepository(self.db)
        self._events = AccessEventRepository(self.db)

        # Tiers
        self.memory = MemoryTier(ttl=memory_ttl)
        self.overflow = OverflowTier(overflow_dir)
        self.durable = DurableTier(self._entries, self.overflow, overflow_threshold=overflow_threshold)

        # Services
        self.recorder = AccessRecorder(self._events)
        self.manager = CacheManager(
            tiers=[self.memory, self.durable],
            recorder=self.recorder,
            freshness=FreshnessPolicy(),
            fetcher=self.fetcher,
        )
        self.prewarmer = Prewarmer(self.manager, delay=prewarm_delay)
        self.cache = CacheService(
            manager=self.manager,
            stats=StatsAggregator(self._events, self._entries),
            invalidator=Invalidator([self.memory, self.durable]),
            prewarmer=self.prewarmer,
            recorder=self.recorder,
        )
        self._started = False

    async def start(self) -> "Container":
        """Open storage, start background work and the upstream client."""
        if self._started:
            return self

        self.db.connect()
        self.memory.start()
        self.recorder.start()
        if self._owns_fetcher:
            set_api_config(API_BASE_URL, API_TIMEOUT)
            await self.fetcher.__aenter__()

        self._started = True
        logger.info("Cache started (db={}, overflow={})", self.db.path, self.overflow.root)
        return self

    async def shutdown(self) -> None:
        """Stop background work and release resources, newest first."""
        if not self._started:
            return

        await self.prewarmer.cancel()
        if self._owns_fetcher:
            await self.fetcher.__aexit__(None, None, None)
        self.recorder.stop()
        self.memory.stop()
        self.memory.clear()
        self.db.close()

        self._started = False
        logger.info("Cache stopped")

    async def __aenter__(self) -> "Container":
        return await self.start()

    async def __aexit__(self, *_):
        await self.shutdown()
