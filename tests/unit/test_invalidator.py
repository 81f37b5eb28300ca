"""Tests for key and dataset invalidation."""

import pytest

from app.models.cache import CacheQuery
from app.services.cache import InvalidQuery, Invalidator, StoreUnavailable, query_key
from tests.fakes import make_records


@pytest.fixture
def invalidator(memory, durable):
    return Invalidator([memory, durable])


class TestInvalidator:
    @pytest.mark.asyncio
    async def test_invalidate_key(self, manager, invalidator, memory, entries):
        query = CacheQuery("QNA", filter="USA")
        await manager.store(query, make_records(3))
        assert await invalidator.invalidate(query_key(query)) == 2
        assert len(memory) == 0
        assert entries.count() == 0
        assert await manager.lookup(query) is None

    @pytest.mark.asyncio
    async def test_invalidate_missing_key(self, invalidator):
        assert await invalidator.invalidate("QNA:all:::") == 0

    @pytest.mark.asyncio
    async def test_invalidate_dataset(self, manager, invalidator, overflow, entries):
        await manager.store(CacheQuery("QNA"), make_records(3))
        await manager.store(CacheQuery("QNA", filter="USA"), make_records(150))
        await manager.store(CacheQuery.structure("QNA"), [{"id": "REF_AREA"}])
        await manager.store(CacheQuery("MEI"), make_records(3))

        assert await invalidator.invalidate_dataset("QNA") == 3
        assert entries.keys_for("QNA") == []
        assert not (overflow.root / "QNA").exists()
        assert await manager.lookup(CacheQuery("QNA")) is None
        assert await manager.lookup(CacheQuery("MEI")) == make_records(3)

    @pytest.mark.asyncio
    async def test_invalidate_dataset_idempotent(self, manager, invalidator):
        await manager.store(CacheQuery("QNA"), make_records(3))
        assert await invalidator.invalidate_dataset(" QNA ") == 1
        assert await invalidator.invalidate_dataset("QNA") == 0

    @pytest.mark.asyncio
    async def test_blank_dataset(self, invalidator):
        with pytest.raises(InvalidQuery):
            await invalidator.invalidate_dataset("  ")

    @pytest.mark.asyncio
    async def test_store_down_propagates_after_memory(self, manager, invalidator, memory, db):
        await manager.store(CacheQuery("QNA"), make_records(3))
        db.close()
        with pytest.raises(StoreUnavailable):
            await invalidator.invalidate_dataset("QNA")
        assert len(memory) == 0


class RecordingTier:
    """Remembers the order tiers were cleared in."""

    def __init__(self, name, log, fail=False):
        self.name = name
        self._log = log
        self._fail = fail

    async def delete(self, key):
        self._log.append(self.name)
        if self._fail:
            raise StoreUnavailable("down")
        return 1

    async def delete_dataset(self, dataset_id):
        return await self.delete(dataset_id)


class TestInvalidationOrder:
    @pytest.mark.asyncio
    async def test_durable_cleared_before_memory(self):
        log = []
        invalidator = Invalidator([RecordingTier("memory", log), RecordingTier("durable", log)])
        await invalidator.invalidate("QNA:all:::")
        await invalidator.invalidate_dataset("QNA")
        assert log == ["durable", "memory", "durable", "memory"]

    @pytest.mark.asyncio
    async def test_memory_cleared_even_when_durable_fails(self):
        log = []
        invalidator = Invalidator([RecordingTier("memory", log), RecordingTier("durable", log, fail=True)])
        with pytest.raises(StoreUnavailable):
            await invalidator.invalidate("QNA:all:::")
        assert log == ["durable", "memory"]

    @pytest.mark.asyncio
    async def test_lookup_between_tiers_cannot_restore_entry(self, manager, memory, durable):
        query = CacheQuery("QNA")
        await manager.store(query, make_records(3))
        memory.clear()

        class LookupAfterDurable:
            name = "durable"

            async def delete_dataset(self, dataset_id):
                removed = await durable.delete_dataset(dataset_id)
                await manager.lookup(query)
                return removed

        await Invalidator([memory, LookupAfterDurable()]).invalidate_dataset("QNA")
        assert len(memory) == 0
        assert await manager.lookup(query) is None
