"""Common models - base classes and shared helpers."""

from app.models.common.base import BaseEntity, utcnow

__all__ = [
    "BaseEntity",
    "utcnow",
]
