"""OECD SDMX API client package."""

from oecd_client.base import BaseClient, set_api_config
from oecd_client.data import DataClient
from oecd_client.errors import RateLimited, UpstreamError

__all__ = [
    # Base
    "BaseClient",
    "set_api_config",
    # Errors
    "UpstreamError",
    "RateLimited",
    # Clients
    "DataClient",
]
