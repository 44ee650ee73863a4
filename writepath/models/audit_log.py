"""OrderAuditLog ORM — append-only audit trail of order and related entity changes.

Invariants:
    - Rows are inserted, never updated or deleted by application code
    - timestamp and created_at are server-assigned
    - action holds an AuditAction value (validated by the writer, not the DB)

Design Decisions:
    - JSON columns for old/new values and metadata: the changed entity's shape varies
    - `metadata` column mapped to attribute `entry_metadata` (SQLAlchemy reserves
      `metadata` on declarative classes)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from writepath.db.base import Base


class OrderAuditLog(Base):
    """One immutable record describing one change to one entity."""
    __tablename__ = "order_audit_log"
    __table_args__ = (
        Index("idx_audit_order_id", "order_id"),
        Index("idx_audit_user_id", "user_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_timestamp", "timestamp"),
        Index("idx_audit_entity", "entity_type", "entity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="order",
    )
    entity_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    field_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    old_value: Mapped[object | None] = mapped_column(JSON, nullable=True)
    new_value: Mapped[object | None] = mapped_column(JSON, nullable=True)
    changes_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    entry_metadata: Mapped[dict | None] = mapped_column(
        "metadata", JSON, nullable=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
