"""Tier interface - one storage layer in the fallback chain."""

from dataclasses import dataclass
from typing import Protocol

from app.models.cache import CacheEntry, Tier


@dataclass
class TierHit:
    """Entry found in a tier, payload resolved."""

    entry: CacheEntry
    tier: Tier

    @property
    def records(self) -> list[dict]:
        return self.entry.records


class CacheTier(Protocol):
    """Storage layer the cache manager walks in order.

    ``get`` returns None for absent or expired keys and raises
    StoreUnavailable when the backing store cannot answer.
    """

    name: str

    async def get(self, key: str) -> TierHit | None: ...

    async def put(self, entry: CacheEntry) -> None: ...

    async def delete(self, key: str) -> int: ...

    async def delete_dataset(self, dataset_id: str) -> int: ...
