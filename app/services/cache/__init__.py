"""Tiered cache services."""

from app.services.cache.errors import CacheError, InvalidQuery, StoreUnavailable
from app.services.cache.freshness import FreshnessPolicy, parse_period
from app.services.cache.invalidator import Invalidator
from app.services.cache.keys import derive_key, derive_structure_key, query_key
from app.services.cache.manager import CacheManager, Fetcher
from app.services.cache.prewarmer import Prewarmer, WarmReport
from app.services.cache.recorder import AccessRecorder
from app.services.cache.service import CacheService
from app.services.cache.stats import StatsAggregator
from app.services.cache.tiers import DurableTier, MemoryTier, OverflowTier

__all__ = [
    # Errors
    "CacheError",
    "InvalidQuery",
    "StoreUnavailable",
    # Keys and freshness
    "derive_key",
    "derive_structure_key",
    "query_key",
    "FreshnessPolicy",
    "parse_period",
    # Tiers
    "MemoryTier",
    "DurableTier",
    "OverflowTier",
    # Services
    "CacheManager",
    "Fetcher",
    "AccessRecorder",
    "StatsAggregator",
    "Invalidator",
    "Prewarmer",
    "WarmReport",
    "CacheService",
]
