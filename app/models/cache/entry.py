"""Cache entry model - canonical record of a cached query result."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from app.models.cache.query import EntryClass
from app.models.common.base import BaseEntity, utcnow

CACHE_ENTRY_DDL = """
CREATE TABLE IF NOT EXISTS cache_entry (
    cache_key VARCHAR PRIMARY KEY,
    dataset_id VARCHAR NOT NULL,
    entry_class VARCHAR NOT NULL,
    filter VARCHAR,
    start_period VARCHAR,
    end_period VARCHAR,
    last_n_observations INTEGER,
    observation_count INTEGER NOT NULL,
    data JSON,
    overflow_ref VARCHAR,
    ttl_seconds INTEGER NOT NULL,
    cached_at TIMESTAMP NOT NULL,
    accessed_at TIMESTAMP NOT NULL,
    access_count INTEGER NOT NULL DEFAULT 0,
    CHECK (cache_key <> ''),
    CHECK (observation_count >= 0),
    CHECK ((data IS NULL) <> (overflow_ref IS NULL))
)
"""


@dataclass
class CacheEntry(BaseEntity):
    """Cached query result.

    Exactly one of ``records`` (inline payload) and ``overflow_ref``
    (pointer into the overflow store) is set.
    """

    key: str
    dataset_id: str
    records: list[dict] | None = None
    overflow_ref: str | None = None
    entry_class: EntryClass = EntryClass.OBSERVATION
    filter: str | None = None
    start_period: str | None = None
    end_period: str | None = None
    last_n_observations: int | None = None
    observation_count: int = 0
    ttl_seconds: int = 0
    cached_at: datetime = field(default_factory=utcnow)
    accessed_at: datetime = field(default_factory=utcnow)
    access_count: int = 0

    def __post_init__(self):
        if (self.records is None) == (self.overflow_ref is None):
            raise ValueError(f"Cache entry {self.key!r} needs exactly one of records or overflow_ref")
        if self.records is not None:
            self.observation_count = len(self.records)

    @property
    def expires_at(self) -> datetime:
        return self.cached_at + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime) -> bool:
        return now - self.cached_at >= timedelta(seconds=self.ttl_seconds)

    def with_overflow(self, ref: str) -> "CacheEntry":
        """Copy holding a pointer instead of the inline payload."""
        return replace(self, records=None, overflow_ref=ref)

    def with_records(self, records: list[dict]) -> "CacheEntry":
        """Copy holding the inline payload instead of a pointer."""
        return replace(self, records=records, overflow_ref=None)
