"""Data Sync — named invalidation wrappers over resolve() + CacheClient.

Invariants:
    - Every sync_* call invalidates exactly resolve(<event>): no ad-hoc key lists
    - CacheUnavailableError propagates; the caller decides to retry or proceed
"""

import logging
from typing import Any

from writepath.core.domain_types import CacheKey, DomainEvent
from writepath.core.invalidation_rules import resolve
from writepath.services.cache_client import CacheClient

logger = logging.getLogger(__name__)


class DataSync:
    def __init__(self, cache: CacheClient):
        self._cache = cache

    async def sync(self, domain_event: DomainEvent | str) -> None:
        keys = resolve(domain_event)
        logger.debug(
            "Syncing views for domain event",
            extra={"domain_event": str(getattr(domain_event, "value", domain_event))},
        )
        await self._cache.invalidate(keys)

    async def sync_customers(self) -> None:
        await self.sync(DomainEvent.CUSTOMER_CHANGE)

    async def sync_catalog(self) -> None:
        await self.sync(DomainEvent.CATALOG_CHANGE)

    async def sync_orders(self) -> None:
        await self.sync(DomainEvent.ORDER_CHANGE)

    async def sync_team(self) -> None:
        await self.sync(DomainEvent.TEAM_CHANGE)

    async def refresh_all(self) -> None:
        await self._cache.invalidate_all()

    async def refetch_query(self, key: CacheKey) -> Any:
        return await self._cache.refetch(key)

    async def remove_query(self, key: CacheKey) -> None:
        await self._cache.remove(key)
