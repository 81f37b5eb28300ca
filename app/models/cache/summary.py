"""Cache statistics entities."""

from dataclasses import dataclass, field

from app.models.common.base import BaseEntity


@dataclass
class DataflowHits(BaseEntity):
    """Lookup count for one dataflow."""

    dataflow_id: str
    hits: int


@dataclass
class CacheSummary(BaseEntity):
    """Cache performance over a rolling window."""

    window_hours: int
    total_cached_entries: int = 0
    total_hits: int = 0
    total_misses: int = 0
    hit_rate: float = 0.0
    avg_response_time_ms: float | None = None
    top_dataflows: list[DataflowHits] = field(default_factory=list)
