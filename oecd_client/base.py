"""Base HTTP client with retry logic."""

import asyncio

import httpx
from loguru import logger
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from oecd_client.errors import RateLimited, UpstreamError

# Default settings
API_BASE_URL = "https://sdmx.oecd.org/public/rest"
API_TIMEOUT = 60


def set_api_config(base_url: str, timeout: int) -> None:
    """Set API configuration."""
    global API_BASE_URL, API_TIMEOUT
    API_BASE_URL = base_url
    API_TIMEOUT = timeout


def _is_retryable_error(exc: BaseException) -> bool:
    """Check if exception is retryable (network errors + 5xx server errors)."""
    if isinstance(exc, (httpx.ReadError, httpx.ConnectError, httpx.TimeoutException)):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


def _retry_after(response: httpx.Response) -> float | None:
    """Parse a Retry-After header given in seconds."""
    value = response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


class BaseClient:
    """Base async HTTP client with rate limiting and exponential backoff."""

    def __init__(self, max_concurrent: int = 3, transport: httpx.AsyncBaseTransport | None = None):
        self._client: httpx.AsyncClient | None = None
        self._sem = asyncio.Semaphore(max_concurrent)
        self._transport = transport
        self._request_count = 0
        logger.info("{}: max_concurrent={}", self.__class__.__name__, max_concurrent)

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=API_TIMEOUT,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_):
        logger.info("Total API requests: {}", self._request_count)
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        retry=retry_if_exception(_is_retryable_error),
    )
    async def _request(self, path: str, params: dict | None, accept: str) -> dict:
        """GET request with retry logic."""
        async with self._sem:
            await asyncio.sleep(0.05)
            self._request_count += 1
            resp = await self._client.get(
                f"{API_BASE_URL}/{path}",
                params=params,
                headers={"Accept": accept},
            )
            resp.raise_for_status()
            return resp.json()

    async def _get(self, path: str, params: dict | None = None, accept: str = "application/json") -> dict:
        """GET request, mapping failures onto upstream errors."""
        if self._client is None:
            raise RuntimeError(f"{self.__class__.__name__} used outside 'async with'")

        try:
            return await self._request(path, params, accept)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.warning("Giving up on {} after retries: {}", path, cause)
            raise UpstreamError(f"GET {path} failed after retries: {cause}") from cause
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimited(f"GET {path} rate limited", retry_after=_retry_after(e.response)) from e
            raise UpstreamError(f"GET {path} returned {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"GET {path} returned invalid JSON") from e
