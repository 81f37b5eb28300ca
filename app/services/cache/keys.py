"""Cache key derivation."""

from app.models.cache import CacheQuery, EntryClass
from app.services.cache.errors import InvalidQuery

SEPARATOR = ":"
ALL_SERIES = "all"
STRUCTURE_SUFFIX = "@structure"


def _escape(value: str) -> str:
    """Percent-encode the escape char and the separator so fields stay unambiguous."""
    return value.replace("%", "%25").replace(SEPARATOR, "%3A")


def _normalize(value: str | None) -> str:
    """Strip and escape a field; absent becomes the empty string."""
    if value is None:
        return ""
    return _escape(str(value).strip())


def _dataset(dataset_id: str | None) -> str:
    dataset = _normalize(dataset_id)
    if not dataset:
        raise InvalidQuery("dataset_id is required")
    return dataset


def _count(last_n_observations: int | None) -> str:
    """Count hint as text; None and 0 both mean no limit."""
    if not last_n_observations:
        return ""
    if isinstance(last_n_observations, bool) or not isinstance(last_n_observations, int):
        raise InvalidQuery(f"last_n_observations must be an integer: {last_n_observations!r}")
    return str(last_n_observations)


def derive_key(
    dataset_id: str,
    filter: str | None = None,
    start_period: str | None = None,
    end_period: str | None = None,
    last_n_observations: int | None = None,
) -> str:
    """Key for an observation query: dataset:filter:start:end:count.

    ``%`` and ``:`` inside fields are percent-encoded, so ISO date-times are
    valid periods and distinct queries never share a key.
    """
    return SEPARATOR.join(
        [
            _dataset(dataset_id),
            _normalize(filter) or ALL_SERIES,
            _normalize(start_period),
            _normalize(end_period),
            _count(last_n_observations),
        ]
    )


def derive_structure_key(dataset_id: str) -> str:
    """Key for a dataflow structure (metadata) entry."""
    return f"{_dataset(dataset_id)}{SEPARATOR}{STRUCTURE_SUFFIX}"


def query_key(query: CacheQuery) -> str:
    """Key for any cache query."""
    if query.entry_class == EntryClass.METADATA:
        return derive_structure_key(query.dataset_id)
    return derive_key(
        query.dataset_id,
        filter=query.filter,
        start_period=query.start_period,
        end_period=query.end_period,
        last_n_observations=query.last_n_observations,
    )
