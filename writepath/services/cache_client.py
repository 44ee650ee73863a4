"""Cache Client — the only path through which callers mutate the shared read-cache.

Invariants:
    - invalidate(keys) applies every pattern concurrently; order carries no meaning
    - Backend failures are logged and raised as CacheUnavailableError, never swallowed
    - Concurrent refetches of one key share a single backend read, unless an
      invalidation or removal of that key landed after the read started
    - A caller cancelled while awaiting a shared refetch does not cancel the read

Design Decisions:
    - Coalescing by dropping the in-flight entry on invalidation: the first read still
      answers its own callers, later callers start a fresh read
"""

import asyncio
import logging
from typing import Any, Iterable

from writepath.core.domain_types import CacheKey
from writepath.core.errors import CacheUnavailableError, ErrorContext
from writepath.core.invalidation_rules import key_matches
from writepath.core.repository_protocols import CacheBackend

logger = logging.getLogger(__name__)


class CacheClient:
    """Adapter over a CacheBackend with typed failures and refetch coalescing."""

    def __init__(self, backend: CacheBackend):
        self._backend = backend
        self._inflight: dict[CacheKey, asyncio.Task] = {}

    async def invalidate(self, keys: Iterable[CacheKey]) -> None:
        """Mark every cached read matching any of keys stale."""
        patterns = [tuple(k) for k in keys]
        if not patterns:
            return
        for pattern in patterns:
            self._forget_inflight(pattern)
        logger.info("Invalidating %d cache pattern(s)", len(patterns))
        results = await asyncio.gather(
            *(self._backend.invalidate(p) for p in patterns),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            raise self._unavailable(
                failures[0], "invalidate", patterns,
            ) from failures[0]

    async def refetch(self, key: CacheKey) -> Any:
        """Force a fresh read of key; concurrent calls may share one read."""
        key = tuple(key)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key))
            self._inflight[key] = task
            task.add_done_callback(self._make_cleanup(key, task))
        return await asyncio.shield(task)

    async def remove(self, key: CacheKey) -> None:
        """Evict key (and everything under it) from the cache."""
        key = tuple(key)
        self._forget_inflight(key)
        try:
            await self._backend.remove(key)
        except Exception as e:
            raise self._unavailable(e, "remove", [key]) from e

    async def invalidate_all(self) -> None:
        """Mark the whole cache stale. Escape hatch, not a substitute for resolve()."""
        self._inflight.clear()
        logger.info("Invalidating all cached data")
        try:
            await self._backend.invalidate_all()
        except Exception as e:
            raise self._unavailable(e, "invalidate_all", []) from e

    # ─── Helpers ────────────────────────────────────────────────

    async def _load(self, key: CacheKey) -> Any:
        try:
            return await self._backend.refetch(key)
        except Exception as e:
            raise self._unavailable(e, "refetch", [key]) from e

    def _make_cleanup(self, key: CacheKey, task: asyncio.Task):
        def cleanup(_: asyncio.Task) -> None:
            if self._inflight.get(key) is task:
                del self._inflight[key]
        return cleanup

    def _forget_inflight(self, pattern: CacheKey) -> None:
        for key in [k for k in self._inflight if key_matches(pattern, k)]:
            del self._inflight[key]

    def _unavailable(
        self, error: Exception, operation: str, keys: list[CacheKey],
    ) -> CacheUnavailableError:
        logger.error(
            f"Cache {operation} failed: {error}",
            extra={"operation": operation, "error_code": "CACHE_UNAVAILABLE"},
        )
        return CacheUnavailableError(
            str(error), operation,
            ErrorContext(debug_info={"keys": [list(k) for k in keys]}),
        )
