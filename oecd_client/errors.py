"""Upstream errors raised by the OECD client."""


class UpstreamError(Exception):
    """OECD API request failed."""

    def __init__(self, message: str = "Upstream request failed", status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class RateLimited(UpstreamError):
    """OECD API rejected the request with 429 Too Many Requests."""

    def __init__(self, message: str = "Rate limited by upstream", retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)
