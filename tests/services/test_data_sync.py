"""Data Sync — named wrappers invalidate exactly what resolve() returns."""

import pytest

from writepath.core.domain_types import DomainEvent
from writepath.core.errors import UnknownDomainEventError
from writepath.core.invalidation_rules import QueryKeys, resolve
from writepath.infrastructure.memory_cache import InMemoryCacheBackend
from writepath.services.cache_client import CacheClient
from writepath.services.data_sync import DataSync
from tests.fakes import CountingLoader


class RecordingCacheClient(CacheClient):
    def __init__(self, backend):
        super().__init__(backend)
        self.invalidated: list = []

    async def invalidate(self, keys):
        keys = list(keys)
        self.invalidated.append(keys)
        await super().invalidate(keys)


@pytest.fixture
def backend():
    return InMemoryCacheBackend(CountingLoader())


@pytest.fixture
def cache(backend):
    return RecordingCacheClient(backend)


@pytest.fixture
def sync(cache):
    return DataSync(cache)


@pytest.mark.parametrize("method, event", [
    ("sync_customers", DomainEvent.CUSTOMER_CHANGE),
    ("sync_catalog", DomainEvent.CATALOG_CHANGE),
    ("sync_orders", DomainEvent.ORDER_CHANGE),
    ("sync_team", DomainEvent.TEAM_CHANGE),
])
async def test_named_wrappers_match_resolve(sync, cache, method, event):
    await getattr(sync, method)()
    assert cache.invalidated == [list(resolve(event))]


async def test_sync_accepts_wire_name(sync, cache):
    await sync.sync("onCatalogChange")
    assert cache.invalidated[0][0] == QueryKeys.CATALOG


async def test_sync_unknown_event_raises(sync, cache):
    with pytest.raises(UnknownDomainEventError):
        await sync.sync("onSomethingElse")
    assert cache.invalidated == []


async def test_refresh_all_and_query_helpers(sync, backend):
    await backend.read(QueryKeys.TEAM)
    data = await sync.refetch_query(QueryKeys.TEAM)
    assert data["load"] == 2
    await sync.refresh_all()
    assert backend.is_stale(QueryKeys.TEAM)
    await sync.remove_query(QueryKeys.TEAM)
    assert backend.peek(QueryKeys.TEAM) is None
