"""Data API client - observations and structures."""

from oecd_client.data.client import DataClient, parse_observations, parse_structure
from oecd_client.data.schemas import DataMessageSchema, StructureMessageSchema

__all__ = [
    "DataClient",
    "parse_observations",
    "parse_structure",
    "DataMessageSchema",
    "StructureMessageSchema",
]
