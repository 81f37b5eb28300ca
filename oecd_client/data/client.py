"""Data API client - observations and dataflow structures."""

import re

from loguru import logger

from oecd_client.base import BaseClient
from oecd_client.data.schemas import DataMessageSchema, StructureMessageSchema
from oecd_client.errors import UpstreamError

DATA_ACCEPT = "application/vnd.sdmx.data+json; charset=utf-8; version=2.0"
STRUCTURE_ACCEPT = "application/vnd.sdmx.structure+json; charset=utf-8; version=1.0"

_CODELIST_URN = re.compile(r"Codelist=[^:]+:([^(]+)\(")


def parse_observations(payload: dict) -> list[dict]:
    """Flatten an SDMX-JSON data message into one record per observation."""
    message = DataMessageSchema.model_validate(payload.get("data", payload))
    if not message.data_sets:
        return []

    dimensions = message.dimensions()
    records = []
    for index_key, values in message.data_sets[0].observations.items():
        indices = [int(i) for i in index_key.split(":")] if index_key else []
        if len(indices) != len(dimensions):
            raise UpstreamError(f"Observation key {index_key!r} does not match {len(dimensions)} dimensions")

        record = {dim.id: dim.values[i].id for dim, i in zip(dimensions, indices)}
        raw = values[0] if values else None
        record["value"] = float(raw) if raw is not None else None
        records.append(record)

    return records


def parse_structure(payload: dict) -> list[dict]:
    """Flatten an SDMX-JSON structure message into one record per dimension."""
    message = StructureMessageSchema.model_validate(payload.get("data", payload))
    if not message.data_structures:
        return []

    codelists = {c.id: c.codes for c in message.codelists}
    dims = message.data_structures[0].components.dimension_list
    result = []
    for dim in [*dims.dimensions, *dims.time_dimensions]:
        urn = dim.local_representation.enumeration if dim.local_representation else None
        match = _CODELIST_URN.search(urn) if urn else None
        codes = codelists.get(match.group(1), []) if match else []
        result.append(
            {
                "id": dim.id,
                "position": dim.position,
                "name": dim.name,
                "values": [{"id": c.id, "name": c.name} for c in codes],
            }
        )

    return sorted(result, key=lambda d: (d["position"] is None, d["position"] or 0))


class DataClient(BaseClient):
    """Client for OECD SDMX data and structure endpoints."""

    async def observations(
        self,
        dataset_id: str,
        filter: str | None = None,
        start_period: str | None = None,
        end_period: str | None = None,
        last_n_observations: int | None = None,
    ) -> list[dict]:
        """GET /data/{dataset}/{filter} - observations as flat records."""
        params = {"dimensionAtObservation": "AllDimensions"}
        if start_period:
            params["startPeriod"] = start_period
        if end_period:
            params["endPeriod"] = end_period
        if last_n_observations:
            params["lastNObservations"] = last_n_observations

        payload = await self._get(f"data/{dataset_id}/{filter or 'all'}", params, accept=DATA_ACCEPT)
        try:
            records = parse_observations(payload)
        except (ValueError, IndexError) as e:
            raise UpstreamError(f"Unparsable data message for {dataset_id}: {e}") from e
        logger.debug("observations({}): {} records", dataset_id, len(records))
        return records

    async def structure(self, dataset_id: str) -> list[dict]:
        """GET /dataflow/all/{dataset}/latest - dimensions with their codes."""
        payload = await self._get(
            f"dataflow/all/{dataset_id}/latest",
            {"references": "all"},
            accept=STRUCTURE_ACCEPT,
        )
        try:
            dims = parse_structure(payload)
        except ValueError as e:
            raise UpstreamError(f"Unparsable structure message for {dataset_id}: {e}") from e
        logger.debug("structure({}): {} dimensions", dataset_id, len(dims))
        return dims

    async def fetch(self, query) -> list[dict]:
        """Fetch whatever a cache query asks for."""
        if query.entry_class == "metadata":
            return await self.structure(query.dataset_id)
        return await self.observations(
            query.dataset_id,
            filter=query.filter,
            start_period=query.start_period,
            end_period=query.end_period,
            last_n_observations=query.last_n_observations,
        )
