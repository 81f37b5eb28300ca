"""Tests for the OECD SDMX client and message parsing."""

import httpx
import pytest
from tenacity import wait_none

from app.models.cache import CacheQuery
from oecd_client import BaseClient, DataClient, RateLimited, UpstreamError
from oecd_client.data import parse_observations, parse_structure

DATA_MESSAGE = {
    "data": {
        "dataSets": [{"observations": {"0:0": [101.5], "0:1": [102.25], "1:0": [None]}}],
        "structures": [
            {
                "dimensions": {
                    "observation": [
                        {"id": "REF_AREA", "keyPosition": 0, "values": [{"id": "USA"}, {"id": "FRA"}]},
                        {"id": "TIME_PERIOD", "values": [{"id": "2024-Q1"}, {"id": "2024-Q2"}]},
                    ]
                }
            }
        ],
    }
}

STRUCTURE_MESSAGE = {
    "data": {
        "dataStructures": [
            {
                "id": "DSD_QNA",
                "dataStructureComponents": {
                    "dimensionList": {
                        "dimensions": [
                            {
                                "id": "MEASURE",
                                "position": 1,
                                "localRepresentation": {
                                    "enumeration": "urn:sdmx:org.sdmx.infomodel.codelist.Codelist=OECD:CL_MEASURE(1.0)"
                                },
                            },
                            {
                                "id": "REF_AREA",
                                "position": 0,
                                "localRepresentation": {
                                    "enumeration": "urn:sdmx:org.sdmx.infomodel.codelist.Codelist=OECD:CL_AREA(1.1)"
                                },
                            },
                        ],
                        "timeDimensions": [{"id": "TIME_PERIOD", "position": 2}],
                    }
                },
            }
        ],
        "codelists": [
            {"id": "CL_AREA", "codes": [{"id": "USA", "name": "United States"}]},
            {"id": "CL_MEASURE", "codes": [{"id": "B1GQ", "name": "GDP"}]},
        ],
    }
}


def client_for(handler) -> DataClient:
    return DataClient(transport=httpx.MockTransport(handler))


class TestParseObservations:
    def test_records(self):
        records = parse_observations(DATA_MESSAGE)
        assert records == [
            {"REF_AREA": "USA", "TIME_PERIOD": "2024-Q1", "value": 101.5},
            {"REF_AREA": "USA", "TIME_PERIOD": "2024-Q2", "value": 102.25},
            {"REF_AREA": "FRA", "TIME_PERIOD": "2024-Q1", "value": None},
        ]

    def test_legacy_layout(self):
        legacy = {"dataSets": DATA_MESSAGE["data"]["dataSets"], "structure": DATA_MESSAGE["data"]["structures"][0]}
        assert len(parse_observations(legacy)) == 3

    def test_no_data_sets(self):
        assert parse_observations({"data": {"dataSets": []}}) == []

    def test_key_mismatch(self):
        bad = {"data": {**DATA_MESSAGE["data"], "dataSets": [{"observations": {"0": [1.0]}}]}}
        with pytest.raises(UpstreamError):
            parse_observations(bad)


class TestParseStructure:
    def test_dimensions_with_codes(self):
        dims = parse_structure(STRUCTURE_MESSAGE)
        assert [d["id"] for d in dims] == ["REF_AREA", "MEASURE", "TIME_PERIOD"]
        assert dims[0]["values"] == [{"id": "USA", "name": "United States"}]
        assert dims[1]["values"] == [{"id": "B1GQ", "name": "GDP"}]
        assert dims[2]["values"] == []

    def test_empty(self):
        assert parse_structure({"data": {}}) == []


class TestDataClient:
    @pytest.mark.asyncio
    async def test_observations_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=DATA_MESSAGE)

        async with client_for(handler) as client:
            records = await client.observations("QNA", "USA.GDP", "2024-Q1", None, 10)

        assert len(records) == 3
        request = seen[0]
        assert request.url.path.endswith("/data/QNA/USA.GDP")
        assert request.url.params["startPeriod"] == "2024-Q1"
        assert request.url.params["lastNObservations"] == "10"
        assert "endPeriod" not in request.url.params
        assert request.url.params["dimensionAtObservation"] == "AllDimensions"
        assert "sdmx.data+json" in request.headers["Accept"]

    @pytest.mark.asyncio
    async def test_all_series_by_default(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=DATA_MESSAGE)

        async with client_for(handler) as client:
            await client.fetch(CacheQuery("QNA"))

        assert seen[0].endswith("/data/QNA/all")

    @pytest.mark.asyncio
    async def test_fetch_structure(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=STRUCTURE_MESSAGE)

        async with client_for(handler) as client:
            dims = await client.fetch(CacheQuery.structure("QNA"))

        assert len(dims) == 3
        assert seen[0].url.path.endswith("/dataflow/all/QNA/latest")
        assert seen[0].url.params["references"] == "all"

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        def handler(request):
            return httpx.Response(429, headers={"Retry-After": "30"})

        async with client_for(handler) as client:
            with pytest.raises(RateLimited) as exc:
                await client.observations("QNA")

        assert exc.value.retry_after == 30.0
        assert exc.value.status_code == 429

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with client_for(lambda request: httpx.Response(404)) as client:
            with pytest.raises(UpstreamError) as exc:
                await client.observations("NOPE")

        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error_retried(self, monkeypatch):
        monkeypatch.setattr(BaseClient._request.retry, "wait", wait_none())
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        async with client_for(handler) as client:
            with pytest.raises(UpstreamError):
                await client.observations("QNA")

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with client_for(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(UpstreamError):
                await client.observations("QNA")

    @pytest.mark.asyncio
    async def test_outside_context(self):
        with pytest.raises(RuntimeError):
            await DataClient().observations("QNA")
