"""Test doubles for the write path's external collaborators.

Invariants:
    - Fakes satisfy the core Protocols structurally (no inheritance)
    - Every fake records its calls so tests assert on interactions
"""

import asyncio
from collections import Counter

from writepath.core.domain_types import CacheKey
from writepath.infrastructure.memory_cache import InMemoryCacheBackend


class CountingLoader:
    """Loader whose result reveals how many times each key was loaded."""

    def __init__(self, delay: float = 0.0):
        self.calls: Counter = Counter()
        self.delay = delay

    async def __call__(self, key: CacheKey):
        self.calls[key] += 1
        load_number = self.calls[key]
        if self.delay:
            await asyncio.sleep(self.delay)
        return {"key": key, "load": load_number}


class FakeNavigationRuntime:
    def __init__(self, history_length: int = 1):
        self.history_length = history_length
        self.calls: list[tuple[str, str | None]] = []

    def go_back(self) -> None:
        self.calls.append(("back", None))
        self.history_length = max(1, self.history_length - 1)

    def replace(self, path: str) -> None:
        self.calls.append(("replace", path))


class StalledCacheBackend(InMemoryCacheBackend):
    """Invalidations never resolve."""

    async def invalidate(self, pattern: CacheKey) -> None:
        await asyncio.Event().wait()

    async def invalidate_all(self) -> None:
        await asyncio.Event().wait()


class UnreachableCacheBackend(InMemoryCacheBackend):
    """Every mutating operation fails as if the backend were down."""

    async def invalidate(self, pattern: CacheKey) -> None:
        raise ConnectionError("cache backend unreachable")

    async def refetch(self, key: CacheKey):
        raise ConnectionError("cache backend unreachable")

    async def remove(self, pattern: CacheKey) -> None:
        raise ConnectionError("cache backend unreachable")

    async def invalidate_all(self) -> None:
        raise ConnectionError("cache backend unreachable")


class FailingRecordStore:
    """Insert always fails; records attempts."""

    def __init__(self):
        self.insert_attempts = 0

    async def insert(self, collection, values):
        self.insert_attempts += 1
        raise ConnectionError("store unreachable")

    async def update(self, collection, filters, values):
        raise ConnectionError("store unreachable")

    async def query(self, collection, filters, order_by=None, descending=False,
                    limit=None, newer_than=None):
        return []

    async def delete(self, collection, filters):
        raise ConnectionError("store unreachable")


class MemoryRecordStore:
    """Dict-backed store; insert yields once so concurrent appends interleave."""

    def __init__(self):
        self.rows: list[dict] = []
        self.queries: list[dict] = []

    async def insert(self, collection, values):
        await asyncio.sleep(0)
        self.rows.append(dict(values))
        return dict(values)

    async def update(self, collection, filters, values):
        return 0

    async def query(self, collection, filters, order_by=None, descending=False,
                    limit=None, newer_than=None):
        self.queries.append({"filters": filters, "limit": limit})
        rows = [
            r for r in self.rows
            if all(r.get(k) == v for k, v in filters.items())
            and all(r[k] >= bound for k, bound in (newer_than or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows[:limit] if limit is not None else rows

    async def delete(self, collection, filters):
        return 0
