"""Services package - service class exports."""

from app.services.cache import CacheManager, CacheService

__all__ = [
    "CacheManager",
    "CacheService",
]
