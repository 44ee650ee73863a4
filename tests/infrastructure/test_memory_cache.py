"""In-Memory Cache Backend — staleness, eviction and raced loads."""

import asyncio

from writepath.infrastructure.memory_cache import InMemoryCacheBackend
from tests.fakes import CountingLoader


async def test_read_serves_fresh_entry_without_loading():
    loader = CountingLoader()
    backend = InMemoryCacheBackend(loader)
    await backend.read(("team",))
    await backend.read(("team",))
    assert loader.calls[("team",)] == 1


async def test_missing_key_counts_as_stale():
    backend = InMemoryCacheBackend(CountingLoader())
    assert backend.is_stale(("nothing",))
    assert backend.peek(("nothing",)) is None


async def test_invalidate_keeps_entries_present():
    backend = InMemoryCacheBackend(CountingLoader())
    await backend.read(("orders", "detail", "1"))
    await backend.invalidate(("orders",))
    entry = backend.peek(("orders", "detail", "1"))
    assert entry is not None and entry.stale


async def test_load_racing_invalidation_is_stored_stale():
    backend = InMemoryCacheBackend(CountingLoader(delay=0.02))
    await backend.read(("catalog",))

    load = asyncio.create_task(backend.refetch(("catalog",)))
    await asyncio.sleep(0)
    await backend.invalidate(("catalog",))
    await load

    assert backend.is_stale(("catalog",))


async def test_remove_only_matching_prefix():
    backend = InMemoryCacheBackend(CountingLoader())
    await backend.read(("team", "users"))
    await backend.read(("teams",))
    await backend.remove(("team",))
    assert backend.keys() == [("teams",)]
