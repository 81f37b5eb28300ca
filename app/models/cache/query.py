"""Cache query - the fixed shape of a cacheable request."""

from dataclasses import dataclass
from enum import StrEnum


class EntryClass(StrEnum):
    """What kind of data a cache entry holds."""

    OBSERVATION = "observation"
    METADATA = "metadata"


@dataclass(frozen=True)
class CacheQuery:
    """Observation or structure query.

    ``dataset_id`` is required. ``filter`` defaults to every series ("all"),
    the periods default to unbounded and ``last_n_observations`` to no limit.
    """

    dataset_id: str
    filter: str | None = None
    start_period: str | None = None
    end_period: str | None = None
    last_n_observations: int | None = None
    entry_class: EntryClass = EntryClass.OBSERVATION

    @classmethod
    def structure(cls, dataset_id: str) -> "CacheQuery":
        """Query for a dataflow's structure (dimensions and codes)."""
        return cls(dataset_id=dataset_id, entry_class=EntryClass.METADATA)

