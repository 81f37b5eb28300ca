"""Tests for tier fallback, promotion and fetch on miss."""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from app.models.cache import CacheQuery, Tier
from app.services.cache import CacheManager, InvalidQuery, StoreUnavailable, query_key
from oecd_client import RateLimited, UpstreamError
from tests.fakes import FakeFetcher, make_records


class BrokenTier:
    name = "durable"

    async def get(self, key):
        raise StoreUnavailable("down")

    async def put(self, entry):
        raise StoreUnavailable("down")

    async def delete(self, key):
        raise StoreUnavailable("down")

    async def delete_dataset(self, dataset_id):
        raise StoreUnavailable("down")


class GatedFetcher(FakeFetcher):
    """Holds every fetch until `n` of them are in flight."""

    def __init__(self, n):
        super().__init__()
        self._n = n
        self._ready = asyncio.Event()

    async def fetch(self, query):
        records = await super().fetch(query)
        if len(self.calls) >= self._n:
            self._ready.set()
        await self._ready.wait()
        return records


def tiers_of(recorder):
    return [e.tier for e in list(recorder._queue.queue)]


class TestLookup:
    @pytest.mark.asyncio
    async def test_full_miss(self, manager, recorder):
        assert await manager.lookup(CacheQuery("QNA")) is None
        assert tiers_of(recorder) == [Tier.MISS]

    @pytest.mark.asyncio
    async def test_store_then_memory_hit(self, manager, recorder, entries):
        query = CacheQuery("QNA", filter="USA.GDP..", start_period="2020-01", end_period="2023-12")
        await manager.store(query, make_records(50))

        records = await manager.lookup(query)
        assert len(records) == 50
        assert tiers_of(recorder) == [Tier.MEMORY]
        assert entries.get(query_key(query)).observation_count == 50

    @pytest.mark.asyncio
    async def test_durable_hit_promotes_to_memory(self, manager, memory, recorder):
        query = CacheQuery("QNA")
        await manager.store(query, make_records(5))
        memory.clear()

        assert len(await manager.lookup(query)) == 5
        assert len(await manager.lookup(query)) == 5
        assert tiers_of(recorder) == [Tier.DURABLE, Tier.MEMORY]

    @pytest.mark.asyncio
    async def test_overflow_hit_promotes_inline_records(self, manager, memory, recorder):
        query = CacheQuery("QNA")
        await manager.store(query, make_records(150))
        memory.clear()

        assert len(await manager.lookup(query)) == 150
        hit = await memory.get(query_key(query))
        assert len(hit.records) == 150
        assert tiers_of(recorder) == [Tier.DURABLE_OVERFLOW]

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss(self, manager, recorder, clock):
        query = CacheQuery("QNA", start_period="2024-05")
        await manager.store(query, make_records(3))
        clock.advance(days=1)
        assert await manager.lookup(query) is None
        assert tiers_of(recorder) == [Tier.MISS]

    @pytest.mark.asyncio
    async def test_historical_entry_lives_a_week(self, manager, clock):
        query = CacheQuery("QNA", start_period="2019")
        await manager.store(query, make_records(3))
        clock.advance(days=6, hours=23)
        assert await manager.lookup(query) is not None
        clock.advance(hours=1)
        assert await manager.lookup(query) is None

    @pytest.mark.asyncio
    async def test_invalid_query_touches_nothing(self, manager, recorder):
        with pytest.raises(InvalidQuery):
            await manager.lookup(CacheQuery(""))
        assert tiers_of(recorder) == []

    @pytest.mark.asyncio
    async def test_unavailable_tier_degrades_to_miss(self, memory, recorder, clock):
        manager = CacheManager([memory, BrokenTier()], recorder, clock=clock)
        assert await manager.lookup(CacheQuery("QNA")) is None
        assert tiers_of(recorder) == [Tier.MISS]

    @pytest.mark.asyncio
    async def test_closed_database_degrades_to_miss(self, manager, db, recorder):
        db.close()
        assert await manager.lookup(CacheQuery("QNA")) is None
        assert tiers_of(recorder) == [Tier.MISS]

    @pytest.mark.asyncio
    async def test_structure_entries(self, manager, entries):
        query = CacheQuery.structure("QNA")
        dims = [{"id": "REF_AREA", "position": 0, "name": "Area", "values": []}]
        entry = await manager.store(query, dims)
        assert entry.ttl_seconds == 30 * 86400
        assert await manager.lookup(query) == dims
        assert entries.get("QNA:@structure").entry_class == "metadata"


class TestStore:
    @pytest.mark.asyncio
    async def test_store_survives_broken_tier(self, memory, recorder, clock):
        manager = CacheManager([memory, BrokenTier()], recorder, clock=clock)
        await manager.store(CacheQuery("QNA"), make_records(2))
        assert await manager.lookup(CacheQuery("QNA")) == make_records(2)

    @pytest.mark.asyncio
    async def test_ttl_from_freshness(self, manager):
        recent = await manager.store(CacheQuery("QNA", start_period="2024-05"), [])
        old = await manager.store(CacheQuery("QNA", start_period="2010"), [])
        assert recent.ttl_seconds == 86400
        assert old.ttl_seconds == 7 * 86400

    @pytest.mark.asyncio
    async def test_concurrent_stores_leave_one_row(self, manager, entries):
        query = CacheQuery("QNA")
        await asyncio.gather(*(manager.store(query, make_records(n)) for n in (1, 2, 3, 4)))
        assert entries.count() == 1
        assert len(await manager.lookup(query)) in (1, 2, 3, 4)


class TestLookupOrFetch:
    @pytest.mark.asyncio
    async def test_fetches_once(self, manager, fetcher):
        query = CacheQuery("QNA", last_n_observations=10)
        first = await manager.lookup_or_fetch(query)
        second = await manager.lookup_or_fetch(query)
        assert first == second == make_records(3)
        assert fetcher.calls == [query]

    @pytest.mark.asyncio
    async def test_concurrent_misses_leave_one_row(self, manager, entries, recorder):
        query = CacheQuery("QNA", filter="USA")
        manager.fetcher = GatedFetcher(2)
        first, second = await asyncio.wait_for(
            asyncio.gather(manager.lookup_or_fetch(query), manager.lookup_or_fetch(query)), timeout=5
        )
        assert first == second == make_records(3)
        assert len(manager.fetcher.calls) == 2
        assert tiers_of(recorder) == [Tier.MISS, Tier.MISS]
        assert entries.keys_for("QNA") == ["QNA:USA:::"]

    @pytest.mark.asyncio
    async def test_explicit_fetcher(self, manager, fetcher):
        other = FakeFetcher(records={"MEI": make_records(7)})
        assert len(await manager.lookup_or_fetch(CacheQuery("MEI"), other)) == 7
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_unserializable_records_still_returned(self, manager, entries, recorder):
        records = [{"TIME_PERIOD": datetime(2024, 1, 1), "value": Decimal("1.5")}]
        manager.fetcher = FakeFetcher(records={"QNA": records})

        assert await manager.lookup_or_fetch(CacheQuery("QNA")) == records
        assert entries.count() == 0
        assert await manager.lookup(CacheQuery("QNA")) == records
        assert tiers_of(recorder) == [Tier.MISS, Tier.MEMORY]

    @pytest.mark.asyncio
    async def test_rate_limited_propagates(self, manager, entries):
        manager.fetcher = FakeFetcher(failures={"QNA": RateLimited(retry_after=30)})
        with pytest.raises(RateLimited):
            await manager.lookup_or_fetch(CacheQuery("QNA"))
        assert entries.count() == 0

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, manager):
        manager.fetcher = FakeFetcher(failures={"QNA": UpstreamError("boom", status_code=503)})
        with pytest.raises(UpstreamError):
            await manager.lookup_or_fetch(CacheQuery("QNA"))

    @pytest.mark.asyncio
    async def test_no_fetcher(self, memory, recorder, clock):
        manager = CacheManager([memory], recorder, clock=clock)
        with pytest.raises(RuntimeError):
            await manager.lookup_or_fetch(CacheQuery("QNA"))
