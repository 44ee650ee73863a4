"""Audit Entries — pure builders and aggregations for audit log records.

Invariants:
    - Builders return AuditLogEntryInput; they never persist anything
    - Summaries are human-readable, one line, derived only from the arguments
    - compute_stats() is a pure fold over already-loaded entries

Design Decisions:
    - Kept out of the writer so formatting is testable without a store
    - Lives in services/ (not core/) because it builds pydantic schemas
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from writepath.core.domain_types import AssignmentType, AuditAction, ItemChange
from writepath.schemas.audit import AuditLogEntry, AuditLogEntryInput


_ASSIGN_ACTIONS = {
    AssignmentType.DESIGNER: AuditAction.DESIGNER_ASSIGNED,
    AssignmentType.MANUFACTURER: AuditAction.MANUFACTURER_ASSIGNED,
    AssignmentType.SALESPERSON: AuditAction.SALESPERSON_ASSIGNED,
}

# No SALESPERSON_UNASSIGNED in the taxonomy; unassignment is logged as an assignment
_UNASSIGN_ACTIONS = {
    AssignmentType.DESIGNER: AuditAction.DESIGNER_UNASSIGNED,
    AssignmentType.MANUFACTURER: AuditAction.MANUFACTURER_UNASSIGNED,
    AssignmentType.SALESPERSON: AuditAction.SALESPERSON_ASSIGNED,
}

_ITEM_ACTIONS = {
    ItemChange.ADDED: AuditAction.ITEM_ADDED,
    ItemChange.UPDATED: AuditAction.ITEM_UPDATED,
    ItemChange.REMOVED: AuditAction.ITEM_REMOVED,
}


def status_change_entry(
    order_id: UUID, user_id: UUID | None,
    old_status: str, new_status: str, reason: str | None = None,
) -> AuditLogEntryInput:
    summary = f'Order status changed from "{old_status}" to "{new_status}"'
    if reason:
        summary += f" - {reason}"
    return AuditLogEntryInput(
        order_id=order_id,
        user_id=user_id,
        action=AuditAction.STATUS_CHANGED,
        field_name="status",
        old_value=old_status,
        new_value=new_status,
        changes_summary=summary,
        metadata={"reason": reason} if reason else None,
    )


def assignment_entry(
    order_id: UUID, user_id: UUID | None,
    assignment_type: AssignmentType, assignee_id: str, assignee_name: str,
    unassign: bool = False,
) -> AuditLogEntryInput:
    actions = _UNASSIGN_ACTIONS if unassign else _ASSIGN_ACTIONS
    verb = "unassigned" if unassign else "assigned"
    return AuditLogEntryInput(
        order_id=order_id,
        user_id=user_id,
        action=actions[assignment_type],
        field_name=f"assigned_{assignment_type.value}_id",
        old_value=assignee_id if unassign else None,
        new_value=None if unassign else assignee_id,
        changes_summary=(
            f"{assignment_type.value.capitalize()} {verb}: {assignee_name}"
        ),
        metadata={
            "assignee_id": assignee_id,
            "assignee_name": assignee_name,
            "assignment_type": assignment_type.value,
        },
    )


def item_change_entry(
    order_id: UUID, user_id: UUID | None, change: ItemChange,
    item: dict[str, Any], old_item: dict[str, Any] | None = None,
) -> AuditLogEntryInput:
    name = item.get("product_name") or item.get("productName") or "item"
    item_id = item.get("id")
    return AuditLogEntryInput(
        order_id=order_id,
        user_id=user_id,
        action=_ITEM_ACTIONS[change],
        entity_type="order_item",
        entity_id=_as_uuid(item_id),
        old_value=old_item,
        new_value=None if change is ItemChange.REMOVED else item,
        changes_summary=f"Order item {change.value}: {name}",
        metadata={
            "item_id": None if item_id is None else str(item_id),
            "item": item,
            "old_item": old_item,
        },
    )


def _as_uuid(value: Any) -> UUID | None:
    """Item ids may be UUIDs or legacy integers; only UUIDs fit entity_id."""
    if value is None or value == "":
        return None
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        return None


def humanize_field(field_name: str) -> str:
    """'shipping_address' / 'shippingAddress' -> 'Shipping address'."""
    spaced = re.sub(r"([A-Z])", r" \1", field_name.replace("_", " "))
    label = " ".join(spaced.split()).lower()
    return label[:1].upper() + label[1:]


def field_update_entry(
    order_id: UUID, user_id: UUID | None, field_name: str,
    old_value: Any, new_value: Any, label: str | None = None,
) -> AuditLogEntryInput:
    display = label or humanize_field(field_name)
    display = display[:1].upper() + display[1:]
    return AuditLogEntryInput(
        order_id=order_id,
        user_id=user_id,
        action=AuditAction.ORDER_UPDATED,
        field_name=field_name,
        old_value=old_value,
        new_value=new_value,
        changes_summary=f'{display} changed from "{old_value}" to "{new_value}"',
        metadata={"field_name": field_name, "display_field": display},
    )


# ─── Aggregation ────────────────────────────────────────────────

_ASSIGNMENT_ACTIONS = frozenset(
    a for a in AuditAction if a.value.endswith(("_ASSIGNED", "_UNASSIGNED"))
)
_ITEM_ACTION_SET = frozenset(_ITEM_ACTIONS.values())


@dataclass(frozen=True)
class AuditStats:
    total_changes: int = 0
    status_changes: int = 0
    assignments: int = 0
    item_changes: int = 0
    last_activity: datetime | None = None
    unique_users: int = 0


def compute_stats(entries: Iterable[AuditLogEntry]) -> AuditStats:
    entries = list(entries)
    if not entries:
        return AuditStats()
    return AuditStats(
        total_changes=len(entries),
        status_changes=sum(
            1 for e in entries if e.action == AuditAction.STATUS_CHANGED
        ),
        assignments=sum(1 for e in entries if e.action in _ASSIGNMENT_ACTIONS),
        item_changes=sum(1 for e in entries if e.action in _ITEM_ACTION_SET),
        last_activity=max(e.timestamp for e in entries),
        unique_users=len({e.user_id for e in entries if e.user_id is not None}),
    )
