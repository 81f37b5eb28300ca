"""Cache errors."""


class CacheError(Exception):
    """Base class for cache-internal errors."""

    def __init__(self, message: str = "Cache error"):
        self.message = message
        super().__init__(self.message)


class InvalidQuery(CacheError, ValueError):
    """Query cannot be turned into a cache key."""

    def __init__(self, message: str = "Invalid query"):
        super().__init__(message)


class StoreUnavailable(CacheError):
    """Durable or overflow store unreachable or timed out."""

    def __init__(self, message: str = "Store unavailable"):
        super().__init__(message)
