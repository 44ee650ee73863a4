"""Navigation Guard — safe backward navigation around in-flight writes.

Invariants:
    - State machine: IDLE -> FLUSHING -> NAVIGATING -> IDLE, or IDLE -> NAVIGATING
      when nothing is pending, no flush is outstanding and nothing settled since
      the last navigation
    - The flush (registry idle + tracked invalidations + invalidate_all) is bounded
      by flush_timeout_seconds; on timeout navigation proceeds anyway
    - Any exception raised while flushing sends the user to fallback_path
    - A second safe_navigate_back() while one is running joins the running one

Design Decisions:
    - Tracked flushes are shielded while awaited: a flush timeout abandons the wait,
      it does not cancel the caller's invalidation
    - Destination policy lives in core/navigation_history.py (pure, unit-tested)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable

from writepath.core.domain_types import NavigationState
from writepath.core.mutation_registry import MutationRegistry
from writepath.core.navigation_history import (
    DEFAULT_HISTORY_LIMIT, Destination, NavigationHistory,
)
from writepath.core.repository_protocols import NavigationRuntime
from writepath.services.cache_client import CacheClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationOutcome:
    destination: str
    went_back: bool
    flushed: bool
    timed_out: bool = False
    error: Exception | None = None


class NavigationGuard:
    """Coordinates flush-then-navigate for one running application."""

    def __init__(
        self,
        registry: MutationRegistry,
        cache: CacheClient,
        runtime: NavigationRuntime,
        flush_timeout_seconds: float = 3.0,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        if flush_timeout_seconds <= 0:
            raise ValueError("flush_timeout_seconds must be positive")
        self._registry = registry
        self._cache = cache
        self._runtime = runtime
        self._flush_timeout = flush_timeout_seconds
        self._history = NavigationHistory(history_limit)
        self._outstanding: set[asyncio.Task] = set()
        self._stale = False
        self._running: asyncio.Task | None = None
        self.state = NavigationState.IDLE

    @property
    def history(self) -> NavigationHistory:
        return self._history

    @property
    def needs_flush(self) -> bool:
        return self._registry.is_any_pending() or bool(self._outstanding) or self._stale

    def is_leave_blocked(self) -> bool:
        """True while a write is in flight (drives the "leaving page" warning)."""
        return self._registry.is_any_pending()

    def record_visit(self, path: str) -> None:
        self._history.record(path)

    def mark_stale(self) -> None:
        """Force a flush before the next navigation."""
        self._stale = True

    def track_flush(self, flush: Awaitable) -> asyncio.Task:
        """Register an in-flight invalidation the next navigation must wait for."""
        task = asyncio.ensure_future(flush)
        self._outstanding.add(task)
        self._stale = True
        task.add_done_callback(self._outstanding.discard)
        return task

    async def safe_navigate_back(self, fallback_path: str) -> NavigationOutcome:
        if self._running is None or self._running.done():
            self._running = asyncio.ensure_future(self._navigate_back(fallback_path))
        return await asyncio.shield(self._running)

    # ─── Steps ──────────────────────────────────────────────────

    async def _navigate_back(self, fallback_path: str) -> NavigationOutcome:
        flushed = timed_out = False
        error: Exception | None = None

        if self.needs_flush:
            self.state = NavigationState.FLUSHING
            try:
                await asyncio.wait_for(self._flush(), timeout=self._flush_timeout)
                flushed = True
            except asyncio.TimeoutError:
                timed_out = True
                logger.warning(
                    "Flush timed out; navigating anyway",
                    extra={"timeout_seconds": self._flush_timeout},
                )
            except Exception as e:
                error = e
                logger.warning(
                    f"Flush failed; falling back to {fallback_path}: {e}",
                    extra={"destination": fallback_path},
                )

        self.state = NavigationState.NAVIGATING
        try:
            if error is not None:
                destination = Destination(path=fallback_path, go_back=False)
            else:
                destination = self._history.choose_destination(
                    fallback_path, self._runtime.history_length,
                )
            self._transition(destination)
        finally:
            self.state = NavigationState.IDLE

        return NavigationOutcome(
            destination=destination.path,
            went_back=destination.go_back,
            flushed=flushed,
            timed_out=timed_out,
            error=error,
        )

    async def _flush(self) -> None:
        await self._registry.wait_idle()
        if self._outstanding:
            await asyncio.gather(*(asyncio.shield(t) for t in list(self._outstanding)))
        await self._cache.invalidate_all()
        self._stale = False

    def _transition(self, destination: Destination) -> None:
        logger.info(
            "Navigating %s", "back" if destination.go_back else "to fallback",
            extra={"destination": destination.path},
        )
        if destination.go_back:
            self._runtime.go_back()
            self._history.pop()
        else:
            self._runtime.replace(destination.path)
            if self._history.current is not None:
                self._history.pop()
            self._history.record(destination.path)
