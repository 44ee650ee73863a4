"""Boundary Protocols — contracts between the coordination core and its collaborators.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Persistence, cache and navigation are reached only through these Protocols
    - Implementations provided by the composition root via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Store and cache methods are async (they do IO); navigation runtime methods
      are sync (a history transition completes immediately)
"""

from datetime import datetime
from typing import Any, Protocol

from writepath.core.domain_types import CacheKey


class RecordStore(Protocol):
    """Persistence collaborator: named collections of flat records."""
    async def insert(self, collection: str, values: dict[str, Any]) -> dict[str, Any]: ...
    async def update(
        self, collection: str, filters: dict[str, Any], values: dict[str, Any],
    ) -> int: ...
    async def query(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        newer_than: dict[str, datetime] | None = None,
    ) -> list[dict[str, Any]]: ...
    async def delete(self, collection: str, filters: dict[str, Any]) -> int: ...


class CacheBackend(Protocol):
    """Read-cache collaborator: hierarchical key-pattern operations."""
    async def invalidate(self, pattern: CacheKey) -> None: ...
    async def refetch(self, key: CacheKey) -> Any: ...
    async def remove(self, pattern: CacheKey) -> None: ...
    async def invalidate_all(self) -> None: ...


class NavigationRuntime(Protocol):
    """Navigation collaborator: the UI router / browser history."""
    @property
    def history_length(self) -> int: ...
    def go_back(self) -> None: ...
    def replace(self, path: str) -> None: ...
