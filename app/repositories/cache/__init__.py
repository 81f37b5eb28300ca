"""Cache repositories."""

from app.repositories.cache.entries import CacheEntryRepository
from app.repositories.cache.events import AccessEventRepository

__all__ = [
    "CacheEntryRepository",
    "AccessEventRepository",
]
