"""Invalidator - removes keys or whole datasets from every tier."""

from collections.abc import Awaitable, Callable

from loguru import logger

from app.services.cache.errors import InvalidQuery, StoreUnavailable
from app.services.cache.tiers import CacheTier


class Invalidator:
    """Deletes from each tier, slowest first.

    Faster tiers are cleared last so a concurrent lookup cannot promote a
    stale durable copy back into memory. Missing keys are a no-op. If a tier
    is unavailable the remaining tiers are still cleared, then the
    StoreUnavailable is raised.
    """

    def __init__(self, tiers: list[CacheTier]):
        self._tiers = tiers

    async def _each_tier(self, delete: Callable[[CacheTier], Awaitable[int]]) -> dict[str, int]:
        counts: dict[str, int] = {}
        failure: StoreUnavailable | None = None
        for tier in reversed(self._tiers):
            try:
                counts[tier.name] = await delete(tier)
            except StoreUnavailable as e:
                logger.warning("Invalidation in {} tier failed: {}", tier.name, e)
                failure = failure or e
        if failure is not None:
            raise failure
        return counts

    async def invalidate(self, key: str) -> int:
        """Remove one key; returns how many tiers held it."""
        counts = await self._each_tier(lambda tier: tier.delete(key))
        removed = sum(counts.values())
        logger.info("Invalidated {} ({} copies)", key, removed)
        return removed

    async def invalidate_dataset(self, dataset_id: str) -> int:
        """Remove every entry of a dataset; returns durable rows removed."""
        dataset_id = (dataset_id or "").strip()
        if not dataset_id:
            raise InvalidQuery("dataset_id is required")

        counts = await self._each_tier(lambda tier: tier.delete_dataset(dataset_id))
        logger.info("Invalidated dataset {}: {}", dataset_id, counts)
        return counts.get("durable", 0)
