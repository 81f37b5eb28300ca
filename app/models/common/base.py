"""Base entity class and shared helpers for all domain entities."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (DuckDB TIMESTAMP)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class BaseEntity:
    """Base class for all entities."""

    def to_dict(self) -> dict[str, Any]:
        """Convert entity to dictionary."""
        return asdict(self)
