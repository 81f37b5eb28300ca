"""Memory tier - process-local store for the hottest entries."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from app.models.cache import CacheEntry, Tier
from app.models.common import utcnow
from app.services.cache.tiers.base import TierHit
from settings import MEMORY_SWEEP_INTERVAL, MEMORY_TTL


@dataclass
class _Item:
    entry: CacheEntry
    cached_at: datetime
    expires_at: datetime


class MemoryTier:
    """Short-lived copies of durable entries, swept on a timer.

    Items live for ``ttl`` seconds from the moment they are put, never past
    the durable expiry of the entry they copy.
    """

    name = "memory"

    def __init__(
        self,
        ttl: int = MEMORY_TTL,
        sweep_interval: float = MEMORY_SWEEP_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._ttl = timedelta(seconds=ttl)
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._items: dict[str, _Item] = {}
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    async def get(self, key: str) -> TierHit | None:
        """Entry if present and not expired."""
        now = self._clock()
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            if now >= item.expires_at:
                del self._items[key]
                return None
        logger.debug("Memory hit: {}", key)
        return TierHit(item.entry, Tier.MEMORY)

    async def put(self, entry: CacheEntry) -> None:
        """Keep a copy of an entry carrying its records."""
        if entry.records is None:
            raise ValueError(f"Memory tier needs inline records for {entry.key!r}")
        now = self._clock()
        item = _Item(entry, now, min(now + self._ttl, entry.expires_at))
        with self._lock:
            self._items[entry.key] = item

    async def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._items.pop(key, None) is not None else 0

    async def delete_dataset(self, dataset_id: str) -> int:
        with self._lock:
            keys = [k for k, item in self._items.items() if item.entry.dataset_id == dataset_id]
            for k in keys:
                del self._items[k]
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def sweep(self) -> int:
        """Remove expired items."""
        now = self._clock()
        with self._lock:
            expired = [k for k, item in self._items.items() if now >= item.expires_at]
            for k in expired:
                del self._items[k]
        if expired:
            logger.debug("Memory sweep removed {} items", len(expired))
        return len(expired)

    def start(self) -> None:
        """Start the background sweep."""
        if self._thread is not None:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._sweep_loop, name="memory-tier-sweep", daemon=True)
        self._thread.start()
        logger.debug("Memory sweep started (every {}s)", self._sweep_interval)

    def stop(self) -> None:
        """Stop the background sweep."""
        if self._thread is None:
            return
        self._stopping.set()
        self._thread.join(timeout=5.0)
        self._thread = None
        logger.debug("Memory sweep stopped")

    def _sweep_loop(self) -> None:
        while not self._stopping.wait(self._sweep_interval):
            self.sweep()
