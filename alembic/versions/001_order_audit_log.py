"""Order audit log — append-only trail of order and related entity changes.

Revision ID: 001_order_audit_log
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_order_audit_log"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "order_audit_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False, server_default="order"),
        sa.Column("entity_id", UUID(as_uuid=True), nullable=True),
        sa.Column("field_name", sa.String(100), nullable=True),
        sa.Column("old_value", sa.JSON, nullable=True),
        sa.Column("new_value", sa.JSON, nullable=True),
        sa.Column("changes_summary", sa.Text, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_audit_order_id", "order_audit_log", ["order_id"])
    op.create_index("idx_audit_user_id", "order_audit_log", ["user_id"])
    op.create_index("idx_audit_action", "order_audit_log", ["action"])
    op.create_index("idx_audit_timestamp", "order_audit_log", ["timestamp"])
    op.create_index("idx_audit_entity", "order_audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("idx_audit_entity", table_name="order_audit_log")
    op.drop_index("idx_audit_timestamp", table_name="order_audit_log")
    op.drop_index("idx_audit_action", table_name="order_audit_log")
    op.drop_index("idx_audit_user_id", table_name="order_audit_log")
    op.drop_index("idx_audit_order_id", table_name="order_audit_log")
    op.drop_table("order_audit_log")
