"""Access event model - one row per cache lookup."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from app.models.common.base import utcnow

ACCESS_EVENT_DDL = """
CREATE TABLE IF NOT EXISTS cache_access_event (
    cache_key VARCHAR NOT NULL,
    dataset_id VARCHAR NOT NULL,
    tier VARCHAR NOT NULL,
    response_time_ms DOUBLE,
    accessed_at TIMESTAMP NOT NULL,
    CHECK (tier IN ('memory', 'durable', 'durable-overflow', 'miss'))
)
"""

ACCESS_EVENT_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_access_event_timestamp ON cache_access_event(accessed_at)",
    "CREATE INDEX IF NOT EXISTS idx_access_event_dataset ON cache_access_event(dataset_id)",
]


class Tier(StrEnum):
    """Where a lookup was satisfied."""

    MEMORY = "memory"
    DURABLE = "durable"
    DURABLE_OVERFLOW = "durable-overflow"
    MISS = "miss"


@dataclass(frozen=True)
class AccessEvent:
    """Immutable lookup outcome."""

    key: str
    dataset_id: str
    tier: Tier
    response_time_ms: float
    timestamp: datetime = field(default_factory=utcnow)
