"""Audit Log Writer — sole creator of audit entries; append-only, best-effort side channel.

Invariants:
    - Only insert and query are used on the store; no update or delete is exposed
    - id, timestamp and created_at are server-assigned
    - timestamp is non-decreasing per order_id: assigned synchronously before the
      insert suspends and clamped to the last timestamp issued for that order
    - An action outside AuditAction raises InvalidActionError and writes nothing
    - record() never fails the business mutation on a store error (log-and-continue)
    - stats() and filtered recent_activity() scan at most STATS_SCAN_LIMIT newest entries

Design Decisions:
    - append() raises AuditWriteFailedError; record() is the wrapper call sites use
      after a business write, so the choice to continue is explicit at the seam
    - Per-order clamp is process-local; a shared store across processes relies on
      the store's own clock ordering
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable
from uuid import UUID, uuid4

from writepath.core.domain_types import (
    AssignmentType, AuditAction, ItemChange, parse_audit_action,
)
from writepath.core.errors import (
    AuditWriteFailedError, ErrorContext, InvalidActionError,
)
from writepath.core.repository_protocols import RecordStore
from writepath.schemas.audit import AuditLogEntry, AuditLogEntryInput
from writepath.services.audit_entries import (
    AuditStats, assignment_entry, compute_stats, field_update_entry,
    item_change_entry, status_change_entry,
)

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "order_audit_log"
MAX_TRACKED_ORDERS = 10_000
STATS_SCAN_LIMIT = 1000
RECENT_SCAN_FACTOR = 10

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogWriter:
    """Appends immutable audit entries and reads them back per order."""

    def __init__(self, store: RecordStore, clock: Clock = _utcnow):
        self._store = store
        self._clock = clock
        self._last_timestamp: dict[UUID, datetime] = {}

    # ─── Writes ─────────────────────────────────────────────────

    async def append(self, entry: AuditLogEntryInput) -> AuditLogEntry:
        action = self._validate_action(entry)
        values = self._build_values(entry, action)
        try:
            record = await self._store.insert(AUDIT_COLLECTION, values)
        except Exception as e:
            raise AuditWriteFailedError(
                str(e), ErrorContext(order_id=str(entry.order_id)),
            ) from e
        return AuditLogEntry.model_validate(record)

    async def append_many(
        self, entries: Iterable[AuditLogEntryInput],
    ) -> list[AuditLogEntry]:
        """Validate every action first, then append in order."""
        entries = list(entries)
        for entry in entries:
            self._validate_action(entry)
        return [await self.append(entry) for entry in entries]

    async def record(self, entry: AuditLogEntryInput) -> AuditLogEntry | None:
        """Best-effort append: store failures are logged, not raised."""
        try:
            return await self.append(entry)
        except AuditWriteFailedError as e:
            logger.error(
                f"Audit entry dropped: {e.message}",
                extra={
                    "order_id": str(entry.order_id),
                    "action": str(getattr(entry.action, "value", entry.action)),
                    "error_code": e.code,
                },
            )
            return None

    async def log_status_change(
        self, order_id: UUID, user_id: UUID | None,
        old_status: str, new_status: str, reason: str | None = None,
    ) -> AuditLogEntry | None:
        return await self.record(
            status_change_entry(order_id, user_id, old_status, new_status, reason),
        )

    async def log_assignment(
        self, order_id: UUID, user_id: UUID | None,
        assignment_type: AssignmentType, assignee_id: str, assignee_name: str,
        unassign: bool = False,
    ) -> AuditLogEntry | None:
        return await self.record(assignment_entry(
            order_id, user_id, assignment_type, assignee_id, assignee_name, unassign,
        ))

    async def log_item_change(
        self, order_id: UUID, user_id: UUID | None, change: ItemChange,
        item: dict[str, Any], old_item: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        return await self.record(
            item_change_entry(order_id, user_id, change, item, old_item),
        )

    async def log_field_update(
        self, order_id: UUID, user_id: UUID | None, field_name: str,
        old_value: Any, new_value: Any, label: str | None = None,
    ) -> AuditLogEntry | None:
        return await self.record(field_update_entry(
            order_id, user_id, field_name, old_value, new_value, label,
        ))

    # ─── Reads ──────────────────────────────────────────────────

    async def history(
        self, order_id: UUID, limit: int = 50, newest_first: bool = False,
    ) -> list[AuditLogEntry]:
        records = await self._store.query(
            AUDIT_COLLECTION,
            {"order_id": order_id},
            order_by="timestamp",
            descending=newest_first,
            limit=limit,
        )
        return [AuditLogEntry.model_validate(r) for r in records]

    async def recent_activity(
        self,
        order_ids: Iterable[UUID] | None = None,
        hours_back: int = 24,
        limit: int = 100,
    ) -> list[AuditLogEntry]:
        wanted = set(order_ids or ())
        cutoff = self._clock() - timedelta(hours=hours_back)
        scan = min(limit * RECENT_SCAN_FACTOR, STATS_SCAN_LIMIT) if wanted else limit
        records = await self._store.query(
            AUDIT_COLLECTION,
            {},
            order_by="timestamp",
            descending=True,
            limit=scan,
            newer_than={"timestamp": cutoff},
        )
        entries = [AuditLogEntry.model_validate(r) for r in records]
        if wanted:
            entries = [e for e in entries if e.order_id in wanted][:limit]
        return entries

    async def stats(self, order_id: UUID) -> AuditStats:
        return compute_stats(
            await self.history(order_id, limit=STATS_SCAN_LIMIT, newest_first=True),
        )

    # ─── Helpers ────────────────────────────────────────────────

    def _validate_action(self, entry: AuditLogEntryInput) -> AuditAction:
        action = parse_audit_action(entry.action)
        if action is None:
            logger.error(
                f"Rejected audit entry with invalid action {entry.action!r}",
                extra={"order_id": str(entry.order_id), "error_code": "INVALID_ACTION"},
            )
            raise InvalidActionError(
                str(entry.action), ErrorContext(order_id=str(entry.order_id)),
            )
        return action

    def _build_values(
        self, entry: AuditLogEntryInput, action: AuditAction,
    ) -> dict[str, Any]:
        now = self._clock()
        return {
            "id": uuid4(),
            "order_id": entry.order_id,
            "user_id": entry.user_id,
            "action": action.value,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "field_name": entry.field_name,
            "old_value": entry.old_value,
            "new_value": entry.new_value,
            "changes_summary": entry.changes_summary,
            "metadata": entry.metadata or None,
            "timestamp": self._next_timestamp(entry.order_id, now),
            "created_at": now,
        }

    def _next_timestamp(self, order_id: UUID, now: datetime) -> datetime:
        last = self._last_timestamp.pop(order_id, None)
        if last is not None and now < last:
            now = last
        self._last_timestamp[order_id] = now
        if len(self._last_timestamp) > MAX_TRACKED_ORDERS:
            del self._last_timestamp[next(iter(self._last_timestamp))]
        return now
