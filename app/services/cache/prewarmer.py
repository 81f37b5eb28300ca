"""Prewarmer - fills the cache for popular dataflows ahead of demand."""

import asyncio
import time
from dataclasses import dataclass, field

from loguru import logger

from app.models.cache import CacheQuery
from app.services.cache.manager import CacheManager, Fetcher
from settings import PREWARM_DELAY, PREWARM_LAST_N


@dataclass
class WarmReport:
    """Outcome of one warm run."""

    warmed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class Prewarmer:
    """Sequentially fetches uncached dataflows, pausing between upstream calls."""

    def __init__(
        self,
        manager: CacheManager,
        delay: float = PREWARM_DELAY,
        last_n_observations: int = PREWARM_LAST_N,
    ):
        self._manager = manager
        self._delay = delay
        self._last_n = last_n_observations
        self._lock = asyncio.Lock()
        self._last_call: float | None = None
        self._task: asyncio.Task | None = None

    def query_for(self, dataset_id: str) -> CacheQuery:
        return CacheQuery(dataset_id=dataset_id, last_n_observations=self._last_n)

    async def warm(self, dataset_ids: list[str], fetch: Fetcher | None = None) -> WarmReport:
        """Cache every listed dataflow that is not cached yet."""
        fetcher = fetch or self._manager.fetcher
        if fetcher is None:
            raise RuntimeError("No fetcher configured for prewarming")

        report = WarmReport()
        logger.info("Pre-caching {} dataflows...", len(dataset_ids))

        async with self._lock:
            for dataset_id in dataset_ids:
                try:
                    query = self.query_for(dataset_id)
                    if await self._manager.lookup(query) is not None:
                        logger.info("{} already cached", dataset_id)
                        report.skipped.append(dataset_id)
                        continue

                    await self._pace()
                    try:
                        records = await fetcher.fetch(query)
                    finally:
                        self._last_call = time.monotonic()

                    await self._manager.store(query, records)
                    report.warmed.append(dataset_id)
                    logger.info("Cached {} ({} observations)", dataset_id, len(records))
                except Exception as e:
                    report.failed[dataset_id] = str(e)
                    logger.error("Failed to pre-cache {}: {}", dataset_id, e)

        logger.info(
            "Pre-caching complete: {} warmed, {} skipped, {} failed",
            len(report.warmed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    def start_background(self, dataset_ids: list[str], fetch: Fetcher | None = None) -> asyncio.Task:
        """Run ``warm`` as a task on the running loop."""
        self._task = asyncio.create_task(self.warm(dataset_ids, fetch), name="cache-prewarm")
        return self._task

    async def wait(self) -> WarmReport | None:
        """Wait for the background warm, if any."""
        if self._task is None:
            return None
        return await self._task

    async def cancel(self) -> None:
        """Cancel a background warm that is still running."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _pace(self) -> None:
        if self._last_call is None:
            return
        wait = self._delay - (time.monotonic() - self._last_call)
        if wait > 0:
            await asyncio.sleep(wait)
