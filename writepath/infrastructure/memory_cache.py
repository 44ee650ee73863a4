"""In-Memory Cache Backend — reference read-cache keyed by hierarchical tuples.

Invariants:
    - invalidate(pattern) marks every key the pattern prefixes stale; entries stay present
    - remove(pattern) evicts every key the pattern prefixes
    - read() serves fresh entries and loads stale or missing ones through the loader
    - A load that raced an invalidation of its key is stored stale, never fresh

Design Decisions:
    - Single async loader callable stands in for the transport: the backend never
      knows about HTTP, only "load the data for this key"
    - Per-key generation counter detects invalidations that land mid-load
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from writepath.core.domain_types import CacheKey
from writepath.core.invalidation_rules import key_matches

logger = logging.getLogger(__name__)

Loader = Callable[[CacheKey], Awaitable[Any]]


@dataclass
class CacheEntry:
    data: Any
    stale: bool = False
    fetched_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class InMemoryCacheBackend:
    """CacheBackend implementation holding entries in a process-local dict."""

    def __init__(self, loader: Loader):
        self._loader = loader
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._generations: dict[CacheKey, int] = {}

    # ─── CacheBackend protocol ─────────────────────────────────

    async def invalidate(self, pattern: CacheKey) -> None:
        for key in self._matching(pattern):
            self._entries[key].stale = True
            self._bump(key)

    async def refetch(self, key: CacheKey) -> Any:
        key = tuple(key)
        generation = self._generations.get(key, 0)
        data = await self._loader(key)
        raced = self._generations.get(key, 0) != generation
        if raced:
            logger.debug("Refetch raced an invalidation; stored stale", extra={"key": key})
        self._entries[key] = CacheEntry(data=data, stale=raced)
        return data

    async def remove(self, pattern: CacheKey) -> None:
        for key in self._matching(pattern):
            del self._entries[key]
            self._bump(key)

    async def invalidate_all(self) -> None:
        for key, entry in self._entries.items():
            entry.stale = True
            self._bump(key)

    # ─── Reads ──────────────────────────────────────────────────

    async def read(self, key: CacheKey) -> Any:
        entry = self._entries.get(tuple(key))
        if entry is not None and not entry.stale:
            return entry.data
        return await self.refetch(key)

    def peek(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(tuple(key))

    def is_stale(self, key: CacheKey) -> bool:
        entry = self._entries.get(tuple(key))
        return entry is None or entry.stale

    def keys(self) -> list[CacheKey]:
        return list(self._entries)

    def _matching(self, pattern: CacheKey) -> list[CacheKey]:
        return [k for k in self._entries if key_matches(pattern, k)]

    def _bump(self, key: CacheKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
