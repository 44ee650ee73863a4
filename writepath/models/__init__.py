"""ORM Models — SQLAlchemy declarative models for persisted write-path records.

Invariants:
    - All models inherit from Base (db/base.py)
    - The audit log is the only table this layer owns

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from writepath.models.audit_log import OrderAuditLog  # noqa: F401
