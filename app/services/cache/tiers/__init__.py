"""Cache tiers - memory, durable and overflow stores."""

from app.services.cache.tiers.base import CacheTier, TierHit
from app.services.cache.tiers.durable import DurableTier
from app.services.cache.tiers.memory import MemoryTier
from app.services.cache.tiers.overflow import OverflowTier

__all__ = [
    "CacheTier",
    "TierHit",
    "MemoryTier",
    "DurableTier",
    "OverflowTier",
]
