"""Repositories package - data access layer for our database."""

from app.repositories.base import BaseRepository
from app.repositories.cache import AccessEventRepository, CacheEntryRepository
from app.repositories.db import Database, init_tables

__all__ = [
    # DB
    "Database",
    "init_tables",
    # Base
    "BaseRepository",
    # Cache
    "CacheEntryRepository",
    "AccessEventRepository",
]
