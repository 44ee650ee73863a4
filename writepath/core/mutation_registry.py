"""Mutation Registry — in-flight write operations, keyed by mutation id.

Invariants:
    - register() is idempotent; unregister() of an unknown id is a no-op
    - Only wait_idle() suspends: register/unregister and the queries never do
    - pending_count() is never negative; each registered id leaves exactly once
    - A closed MutationScope owns nothing and accepts no new ids

Design Decisions:
    - Explicit instance per application, threaded to call sites (ADR: no global registry)
    - Listeners notified after the state change, on a snapshot of the listener list,
      so a listener may register/unregister re-entrantly
    - track() unregisters in finally: success, error and CancelledError all leave
"""

import asyncio
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator

from writepath.core.domain_types import MutationId

logger = logging.getLogger(__name__)

RegistryListener = Callable[[int], None]


def new_mutation_id() -> MutationId:
    """Monotonic clock + random suffix."""
    return MutationId(f"{time.monotonic_ns()}-{uuid.uuid4().hex[:8]}")


@dataclass(frozen=True)
class MutationRecord:
    id: MutationId
    registered_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class MutationRegistry:
    """Process-wide table of in-flight long-running writes."""

    def __init__(self):
        self._records: dict[MutationId, MutationRecord] = {}
        self._listeners: list[RegistryListener] = []

    def register(self, mutation_id: str) -> None:
        if mutation_id in self._records:
            return
        self._records[MutationId(mutation_id)] = MutationRecord(
            id=MutationId(mutation_id),
        )
        logger.debug(
            "Mutation registered",
            extra={"mutation_id": mutation_id, "pending": len(self._records)},
        )
        self._notify()

    def unregister(self, mutation_id: str) -> None:
        if self._records.pop(MutationId(mutation_id), None) is None:
            return
        logger.debug(
            "Mutation unregistered",
            extra={"mutation_id": mutation_id, "pending": len(self._records)},
        )
        self._notify()

    def is_any_pending(self) -> bool:
        return bool(self._records)

    def pending_count(self) -> int:
        return len(self._records)

    def pending_ids(self) -> list[MutationId]:
        return list(self._records)

    def get(self, mutation_id: str) -> MutationRecord | None:
        return self._records.get(MutationId(mutation_id))

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """Call listener(pending_count) after every change. Returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_idle(self) -> None:
        """Resolve once nothing is pending (immediately if already idle)."""
        if not self._records:
            return
        idle = asyncio.Event()

        def on_change(count: int) -> None:
            if count == 0:
                idle.set()

        unsubscribe = self.subscribe(on_change)
        try:
            if self._records:
                await idle.wait()
        finally:
            unsubscribe()

    @contextmanager
    def track(self, mutation_id: str | None = None) -> Iterator[MutationId]:
        """Register for the duration of the block, whatever way it exits."""
        mid = MutationId(mutation_id) if mutation_id else new_mutation_id()
        self.register(mid)
        try:
            yield mid
        finally:
            self.unregister(mid)

    def scope(self) -> "MutationScope":
        return MutationScope(self)

    def _notify(self) -> None:
        count = len(self._records)
        for listener in list(self._listeners):
            try:
                listener(count)
            except Exception:
                logger.exception("Registry listener failed")


class MutationScope:
    """Mutations owned by one UI context; close() force-unregisters the rest."""

    def __init__(self, registry: MutationRegistry):
        self._registry = registry
        self._owned: set[MutationId] = set()
        self.closed = False

    def register(self, mutation_id: str | None = None) -> MutationId | None:
        if self.closed:
            logger.warning(
                "Registration on closed scope ignored",
                extra={"mutation_id": mutation_id},
            )
            return None
        mid = MutationId(mutation_id) if mutation_id else new_mutation_id()
        self._owned.add(mid)
        self._registry.register(mid)
        return mid

    def unregister(self, mutation_id: str) -> None:
        self._owned.discard(MutationId(mutation_id))
        self._registry.unregister(mutation_id)

    @property
    def owned_count(self) -> int:
        return len(self._owned)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        leftover, self._owned = self._owned, set()
        if leftover:
            logger.info(
                "Scope closed with %d in-flight mutation(s); forcing unregistration",
                len(leftover),
            )
        for mid in leftover:
            self._registry.unregister(mid)

    def __enter__(self) -> "MutationScope":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
