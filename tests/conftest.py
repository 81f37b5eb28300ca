"""Shared fixtures: in-memory DuckDB, fake clock, fake upstream."""

from datetime import datetime

import pytest

from app.repositories import AccessEventRepository, CacheEntryRepository, Database
from app.services.cache import (
    AccessRecorder,
    CacheManager,
    DurableTier,
    FreshnessPolicy,
    MemoryTier,
    OverflowTier,
    StatsAggregator,
)
from tests.fakes import FakeClock, FakeFetcher


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 15, 12, 0, 0))


@pytest.fixture
def db():
    database = Database(":memory:").connect()
    yield database
    database.close()


@pytest.fixture
def entries(db):
    return CacheEntryRepository(db)


@pytest.fixture
def events(db):
    return AccessEventRepository(db)


@pytest.fixture
def overflow(tmp_path):
    return OverflowTier(tmp_path / "overflow")


@pytest.fixture
def memory(clock):
    return MemoryTier(ttl=60, clock=clock)


@pytest.fixture
def durable(entries, overflow, clock):
    return DurableTier(entries, overflow, overflow_threshold=100, timeout=5.0, clock=clock)


@pytest.fixture
def recorder(events, clock):
    return AccessRecorder(events, clock=clock)


@pytest.fixture
def stats(events, entries, clock):
    return StatsAggregator(events, entries, clock=clock)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def manager(memory, durable, recorder, fetcher, clock):
    return CacheManager(
        tiers=[memory, durable],
        recorder=recorder,
        freshness=FreshnessPolicy(clock=clock),
        fetcher=fetcher,
        clock=clock,
    )
