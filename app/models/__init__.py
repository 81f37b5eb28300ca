"""Models package - DDL and entities for the cache."""

from app.models.cache import (
    ACCESS_EVENT_DDL,
    ACCESS_EVENT_INDEXES,
    CACHE_ENTRY_DDL,
    AccessEvent,
    CacheEntry,
    CacheQuery,
    CacheSummary,
    DataflowHits,
    EntryClass,
    Tier,
)
from app.models.common import BaseEntity, utcnow

ALL_DDL = [
    CACHE_ENTRY_DDL,
    ACCESS_EVENT_DDL,
    *ACCESS_EVENT_INDEXES,
]

__all__ = [
    # Common
    "BaseEntity",
    "utcnow",
    # Cache
    "CACHE_ENTRY_DDL",
    "ACCESS_EVENT_DDL",
    "ACCESS_EVENT_INDEXES",
    "CacheQuery",
    "EntryClass",
    "CacheEntry",
    "AccessEvent",
    "Tier",
    "CacheSummary",
    "DataflowHits",
    # All DDL
    "ALL_DDL",
]
