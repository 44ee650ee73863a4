"""Cache Client — tests for invalidation, refetch coalescing and typed failures.

Tests cover:
    - resolve() + invalidate marks matching entries stale, leaves others fresh
    - refetch reloads through the loader
    - Concurrent refetches share one load; invalidation breaks the share
    - Backend failures surface as CacheUnavailableError
"""

import asyncio

import pytest

from writepath.core.domain_types import DomainEvent
from writepath.core.errors import CacheUnavailableError
from writepath.core.invalidation_rules import QueryKeys, resolve
from writepath.infrastructure.memory_cache import InMemoryCacheBackend
from writepath.services.cache_client import CacheClient
from tests.fakes import CountingLoader, UnreachableCacheBackend


@pytest.fixture
def loader():
    return CountingLoader()


@pytest.fixture
def backend(loader):
    return InMemoryCacheBackend(loader)


@pytest.fixture
def cache(backend):
    return CacheClient(backend)


async def test_customer_change_marks_customer_views_stale(backend, cache):
    await backend.read(QueryKeys.CUSTOMERS)
    await backend.read(QueryKeys.customer("c1"))
    await backend.read(QueryKeys.CATALOG)

    await cache.invalidate(resolve(DomainEvent.CUSTOMER_CHANGE))

    assert backend.is_stale(QueryKeys.CUSTOMERS)
    assert backend.is_stale(QueryKeys.customer("c1"))
    assert not backend.is_stale(QueryKeys.CATALOG)


async def test_stale_entry_is_reloaded_on_next_read(backend, cache, loader):
    await backend.read(QueryKeys.CUSTOMERS)
    await cache.invalidate([QueryKeys.CUSTOMERS])

    data = await backend.read(QueryKeys.CUSTOMERS)

    assert data["load"] == 2
    assert loader.calls[QueryKeys.CUSTOMERS] == 2


async def test_refetch_forces_a_fresh_load(backend, cache, loader):
    await backend.read(QueryKeys.ORDERS)
    data = await cache.refetch(QueryKeys.ORDERS)
    assert data["load"] == 2
    assert not backend.is_stale(QueryKeys.ORDERS)


async def test_empty_invalidation_is_noop(cache):
    await cache.invalidate([])


async def test_concurrent_refetches_share_one_load():
    loader = CountingLoader(delay=0.01)
    cache = CacheClient(InMemoryCacheBackend(loader))

    first, second = await asyncio.gather(
        cache.refetch(QueryKeys.TEAM), cache.refetch(QueryKeys.TEAM),
    )

    assert loader.calls[QueryKeys.TEAM] == 1
    assert first == second


async def test_invalidation_mid_refetch_starts_a_new_load():
    loader = CountingLoader(delay=0.02)
    backend = InMemoryCacheBackend(loader)
    cache = CacheClient(backend)

    first = asyncio.create_task(cache.refetch(QueryKeys.TEAM))
    await asyncio.sleep(0)
    await cache.invalidate([("team",)])
    second = await cache.refetch(QueryKeys.TEAM)
    first_data = await first

    assert loader.calls[QueryKeys.TEAM] == 2
    assert first_data["load"] == 1
    assert second["load"] == 2


async def test_cancelled_caller_does_not_cancel_shared_load():
    loader = CountingLoader(delay=0.02)
    cache = CacheClient(InMemoryCacheBackend(loader))

    abandoned = asyncio.create_task(cache.refetch(QueryKeys.CATALOG))
    await asyncio.sleep(0)
    survivor = asyncio.create_task(cache.refetch(QueryKeys.CATALOG))
    await asyncio.sleep(0)
    abandoned.cancel()

    assert (await survivor)["load"] == 1
    assert loader.calls[QueryKeys.CATALOG] == 1


async def test_remove_evicts_subtree(backend, cache):
    await backend.read(QueryKeys.order("o1"))
    await backend.read(QueryKeys.ORDERS_ENHANCED)
    await cache.remove(("orders",))
    assert backend.keys() == []


async def test_invalidate_all_marks_everything_stale(backend, cache):
    await backend.read(QueryKeys.TEAM)
    await backend.read(QueryKeys.CATALOG_ITEMS)
    await cache.invalidate_all()
    assert all(backend.is_stale(k) for k in backend.keys())


@pytest.mark.parametrize("call", [
    lambda c: c.invalidate([QueryKeys.CUSTOMERS]),
    lambda c: c.refetch(QueryKeys.CUSTOMERS),
    lambda c: c.remove(QueryKeys.CUSTOMERS),
    lambda c: c.invalidate_all(),
])
async def test_unreachable_backend_raises_cache_unavailable(loader, call):
    cache = CacheClient(UnreachableCacheBackend(loader))
    with pytest.raises(CacheUnavailableError) as exc:
        await call(cache)
    assert exc.value.code == "CACHE_UNAVAILABLE"
    assert isinstance(exc.value.__cause__, ConnectionError)
