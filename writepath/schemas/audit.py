"""Audit Schemas — Pydantic models for audit log input, stored entries and API responses.

Invariants:
    - AuditLogEntryInput carries only caller-supplied fields (no id/timestamp)
    - action is accepted as raw str on input; the writer validates it against the
      closed AuditAction taxonomy and raises InvalidActionError
    - AuditLogEntry is frozen: entries are never mutated after creation

Design Decisions:
    - Input action typed AuditAction | str so a bad action reaches the writer's
      typed error instead of a generic pydantic ValidationError
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from writepath.core.domain_types import AuditAction


class AuditLogEntryInput(BaseModel):
    """Caller-supplied part of an audit entry."""
    order_id: UUID
    user_id: UUID | None = None
    action: AuditAction | str
    entity_type: str = Field("order", min_length=1, max_length=50)
    entity_id: UUID | None = None
    field_name: str | None = None
    old_value: Any = None
    new_value: Any = None
    changes_summary: str | None = None
    metadata: dict[str, Any] | None = None


class AuditLogEntry(BaseModel):
    """Persisted, immutable audit entry."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    user_id: UUID | None = None
    action: AuditAction
    entity_type: str
    entity_id: UUID | None = None
    field_name: str | None = None
    old_value: Any = None
    new_value: Any = None
    changes_summary: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime
    created_at: datetime


class AuditHistoryResponse(BaseModel):
    order_id: UUID
    total_entries: int
    data: list[AuditLogEntry]


class RecentActivityResponse(BaseModel):
    total_entries: int
    filters: dict[str, Any]
    data: list[AuditLogEntry]


class AuditStatsResponse(BaseModel):
    order_id: UUID
    total_changes: int
    status_changes: int
    assignments: int
    item_changes: int
    last_activity: datetime | None
    unique_users: int
