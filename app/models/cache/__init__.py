"""Cache models - queries, entries, access events and summaries."""

from app.models.cache.entry import CACHE_ENTRY_DDL, CacheEntry
from app.models.cache.event import ACCESS_EVENT_DDL, ACCESS_EVENT_INDEXES, AccessEvent, Tier
from app.models.cache.query import CacheQuery, EntryClass
from app.models.cache.summary import CacheSummary, DataflowHits

__all__ = [
    "CACHE_ENTRY_DDL",
    "ACCESS_EVENT_DDL",
    "ACCESS_EVENT_INDEXES",
    "CacheEntry",
    "AccessEvent",
    "Tier",
    "CacheQuery",
    "EntryClass",
    "CacheSummary",
    "DataflowHits",
]
