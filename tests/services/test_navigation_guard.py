"""Navigation Guard — tests for flush-then-navigate around in-flight writes.

Tests cover:
    - Fast path when nothing is pending or stale
    - Waits for registry to drain before navigating
    - Flush timeout proceeds with navigation
    - Flush failure goes to the fallback path
    - Back vs replace decided by app history AND runtime history
    - Concurrent calls join the running navigation
"""

import asyncio

import pytest

from writepath.core.domain_types import NavigationState
from writepath.core.invalidation_rules import QueryKeys
from writepath.core.mutation_registry import MutationRegistry
from writepath.infrastructure.memory_cache import InMemoryCacheBackend
from writepath.services.cache_client import CacheClient
from writepath.services.navigation_guard import NavigationGuard
from tests.fakes import (
    CountingLoader, FakeNavigationRuntime, StalledCacheBackend,
    UnreachableCacheBackend,
)


@pytest.fixture
def registry():
    return MutationRegistry()


@pytest.fixture
def backend():
    return InMemoryCacheBackend(CountingLoader())


@pytest.fixture
def runtime():
    return FakeNavigationRuntime(history_length=3)


def make_guard(registry, backend, runtime, timeout=1.0):
    guard = NavigationGuard(
        registry, CacheClient(backend), runtime, flush_timeout_seconds=timeout,
    )
    guard.record_visit("/orders")
    guard.record_visit("/orders/42")
    return guard


async def test_fast_path_navigates_back_without_flush(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime)

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.went_back is True
    assert outcome.flushed is False
    assert outcome.destination == "/orders"
    assert runtime.calls == [("back", None)]
    assert guard.history.current == "/orders"
    assert guard.state is NavigationState.IDLE


async def test_no_app_history_replaces_with_fallback(registry, backend):
    runtime = FakeNavigationRuntime(history_length=5)
    guard = NavigationGuard(registry, CacheClient(backend), runtime)
    guard.record_visit("/orders/42")

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.went_back is False
    assert runtime.calls == [("replace", "/dashboard")]
    assert guard.history.paths == ["/dashboard"]


async def test_fresh_tab_replaces_with_fallback(registry, backend):
    runtime = FakeNavigationRuntime(history_length=1)
    guard = make_guard(registry, backend, runtime)

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.destination == "/dashboard"
    assert runtime.calls == [("replace", "/dashboard")]


async def test_waits_for_pending_mutation_before_navigating(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime)
    registry.register("save-order")

    navigation = asyncio.create_task(guard.safe_navigate_back("/dashboard"))
    await asyncio.sleep(0.01)
    assert runtime.calls == []
    assert guard.state is NavigationState.FLUSHING
    assert guard.is_leave_blocked()

    registry.unregister("save-order")
    outcome = await navigation

    assert outcome.flushed is True
    assert outcome.timed_out is False
    assert runtime.calls == [("back", None)]


async def test_flush_marks_cached_views_stale(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime)
    await backend.read(QueryKeys.ORDERS)
    guard.mark_stale()

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.flushed is True
    assert backend.is_stale(QueryKeys.ORDERS)
    assert guard.needs_flush is False


async def test_stalled_flush_times_out_and_navigates_anyway(registry, runtime):
    backend = StalledCacheBackend(CountingLoader())
    guard = make_guard(registry, backend, runtime, timeout=0.05)
    guard.mark_stale()

    outcome = await asyncio.wait_for(guard.safe_navigate_back("/dashboard"), 1.0)

    assert outcome.timed_out is True
    assert outcome.flushed is False
    assert outcome.went_back is True
    assert runtime.calls == [("back", None)]


async def test_stuck_mutation_times_out(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime, timeout=0.05)
    registry.register("never-finishes")

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.timed_out is True
    assert runtime.calls == [("back", None)]


async def test_flush_failure_goes_to_fallback(registry, runtime):
    backend = UnreachableCacheBackend(CountingLoader())
    guard = make_guard(registry, backend, runtime)
    guard.mark_stale()

    outcome = await guard.safe_navigate_back("/dashboard")

    assert outcome.error is not None
    assert outcome.went_back is False
    assert outcome.destination == "/dashboard"
    assert runtime.calls == [("replace", "/dashboard")]
    assert guard.state is NavigationState.IDLE


async def test_waits_for_tracked_invalidation(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime)
    release = asyncio.Event()
    finished = []

    async def slow_invalidation():
        await release.wait()
        finished.append(True)

    guard.track_flush(slow_invalidation())
    navigation = asyncio.create_task(guard.safe_navigate_back("/dashboard"))
    await asyncio.sleep(0.01)
    assert runtime.calls == []

    release.set()
    await navigation
    assert finished == [True]
    assert runtime.calls == [("back", None)]


async def test_concurrent_calls_share_one_navigation(registry, backend, runtime):
    guard = make_guard(registry, backend, runtime)
    registry.register("m")

    first = asyncio.create_task(guard.safe_navigate_back("/dashboard"))
    second = asyncio.create_task(guard.safe_navigate_back("/dashboard"))
    await asyncio.sleep(0.01)
    registry.unregister("m")

    a, b = await asyncio.gather(first, second)
    assert a is b
    assert runtime.calls == [("back", None)]


def test_timeout_must_be_positive(registry, backend, runtime):
    with pytest.raises(ValueError):
        NavigationGuard(registry, CacheClient(backend), runtime, flush_timeout_seconds=0)
