"""Mutation Coordinator — register, write, unregister, invalidate, audit, as one awaited call.

Invariants:
    - The mutation id is unregistered exactly once on every exit path, including
      cancellation and unexpected exceptions
    - domain_event is resolved BEFORE the write: an unknown event fails loudly and
      the write never starts
    - Invalidation runs after the write settles, success or classified failure
    - A failed invalidation after a successful write is returned as Ok.sync_error
    - Audit is best-effort: a failure building or storing the entry never turns
      Ok into a failure; only an action outside the taxonomy propagates

Design Decisions:
    - Explicit Ok | Err result instead of onSuccess/onError hooks (ADR: sequential
      post-processing is readable and testable)
    - Invalidation handed to the navigation guard via track_flush so a concurrent
      safe_navigate_back() waits for it
"""

import logging
from typing import Awaitable, Callable, TypeVar, Union

from writepath.core.domain_types import DomainEvent, MutationId
from writepath.core.errors import (
    CacheUnavailableError, InvalidActionError, TransportError,
)
from writepath.core.invalidation_rules import resolve
from writepath.core.mutation_registry import (
    MutationRegistry, MutationScope, new_mutation_id,
)
from writepath.core.result import Ok, Result, err_from_transport
from writepath.schemas.audit import AuditLogEntryInput
from writepath.services.audit_log_writer import AuditLogWriter
from writepath.services.data_sync import DataSync
from writepath.services.navigation_guard import NavigationGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")

AuditSpec = Union[
    AuditLogEntryInput, Callable[[T], "AuditLogEntryInput | None"], None,
]


class MutationCoordinator:
    def __init__(
        self,
        registry: MutationRegistry,
        sync: DataSync,
        audit: AuditLogWriter | None = None,
        navigation: NavigationGuard | None = None,
    ):
        self._registry = registry
        self._sync = sync
        self._audit = audit
        self._navigation = navigation

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        domain_event: DomainEvent | str | None = None,
        mutation_id: str | None = None,
        audit: AuditSpec = None,
        scope: MutationScope | None = None,
    ) -> Result:
        if domain_event is not None:
            resolve(domain_event)

        mid = MutationId(mutation_id) if mutation_id else new_mutation_id()
        owner = scope if scope is not None else self._registry
        owner.register(mid)
        try:
            value = await operation()
        except TransportError as e:
            logger.warning(
                f"Mutation failed: {e.message}",
                extra={"mutation_id": mid, "error_code": e.code},
            )
            result: Result = err_from_transport(e)
        else:
            result = Ok(value)
        finally:
            owner.unregister(mid)

        sync_error = await self._invalidate(domain_event, mid)

        if not result.is_ok():
            return result
        await self._record_audit(audit, result.value, mid)
        return Ok(result.value, sync_error=sync_error)

    async def _record_audit(self, audit: AuditSpec, value: T, mid: MutationId) -> None:
        if self._audit is None or audit is None:
            return
        entry = None
        try:
            entry = audit(value) if callable(audit) else audit
            if entry is not None:
                await self._audit.record(entry)
        except InvalidActionError:
            raise
        except Exception as e:
            order_id = getattr(entry, "order_id", None)
            logger.error(
                f"Audit entry for completed mutation dropped: {e}",
                exc_info=True,
                extra={
                    "mutation_id": mid,
                    "order_id": str(order_id) if order_id else None,
                    "error_code": "AUDIT_WRITE_FAILED",
                },
            )

    async def _invalidate(
        self, domain_event: DomainEvent | str | None, mid: MutationId,
    ) -> CacheUnavailableError | None:
        if domain_event is None:
            return None
        flush = self._sync.sync(domain_event)
        try:
            if self._navigation is not None:
                await self._navigation.track_flush(flush)
            else:
                await flush
        except CacheUnavailableError as e:
            logger.warning(
                "Invalidation after mutation failed; views may be stale",
                extra={
                    "mutation_id": mid,
                    "domain_event": str(getattr(domain_event, "value", domain_event)),
                    "error_code": e.code,
                },
            )
            return e
        return None
