"""Domain Types — rich types that replace bare primitives across the write path.

Invariants:
    - OrderId, UserId, EntryId wrap UUIDs: never use bare UUID in domain logic
    - MutationId is an opaque string (caller-supplied or generated)
    - CacheKey is a hierarchical tuple; a pattern matches every key it prefixes
    - AuditAction and DomainEvent are closed sets: no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, compare equal to raw values
"""

from enum import Enum
from typing import Hashable, NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

OrderId = NewType("OrderId", UUID)
UserId = NewType("UserId", UUID)
EntryId = NewType("EntryId", UUID)
MutationId = NewType("MutationId", str)

CacheKey = tuple[Hashable, ...]


# ─── Enums ───────────────────────────────────────────────────────

class DomainEvent(str, Enum):
    """Classes of business mutation that determine which cached views go stale."""
    CUSTOMER_CHANGE = "onCustomerChange"
    CATALOG_CHANGE = "onCatalogChange"
    ORDER_CHANGE = "onOrderChange"
    TEAM_CHANGE = "onTeamChange"


class AuditAction(str, Enum):
    """Closed taxonomy of audited entity mutations."""
    # Order
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_DELETED = "ORDER_DELETED"
    STATUS_CHANGED = "STATUS_CHANGED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    # Assignment
    DESIGNER_ASSIGNED = "DESIGNER_ASSIGNED"
    DESIGNER_UNASSIGNED = "DESIGNER_UNASSIGNED"
    MANUFACTURER_ASSIGNED = "MANUFACTURER_ASSIGNED"
    MANUFACTURER_UNASSIGNED = "MANUFACTURER_UNASSIGNED"
    SALESPERSON_ASSIGNED = "SALESPERSON_ASSIGNED"
    # Items
    ITEM_ADDED = "ITEM_ADDED"
    ITEM_UPDATED = "ITEM_UPDATED"
    ITEM_REMOVED = "ITEM_REMOVED"
    # Customer
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"
    NOTES_UPDATED = "NOTES_UPDATED"
    # Production
    PRODUCTION_STARTED = "PRODUCTION_STARTED"
    PRODUCTION_COMPLETED = "PRODUCTION_COMPLETED"
    QUALITY_CHECK_PASSED = "QUALITY_CHECK_PASSED"
    QUALITY_CHECK_FAILED = "QUALITY_CHECK_FAILED"
    # Delivery
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    # Payment
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    REFUND_ISSUED = "REFUND_ISSUED"
    # Files
    FILE_UPLOADED = "FILE_UPLOADED"
    FILE_DELETED = "FILE_DELETED"
    # Communication
    MESSAGE_SENT = "MESSAGE_SENT"
    EMAIL_SENT = "EMAIL_SENT"


class AssignmentType(str, Enum):
    """Roles that can be assigned to an order."""
    DESIGNER = "designer"
    MANUFACTURER = "manufacturer"
    SALESPERSON = "salesperson"


class ItemChange(str, Enum):
    """Order item change kinds."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class NavigationState(str, Enum):
    """Navigation guard lifecycle: IDLE -> (FLUSHING ->) NAVIGATING -> IDLE."""
    IDLE = "idle"
    FLUSHING = "flushing"
    NAVIGATING = "navigating"


def parse_audit_action(value: "AuditAction | str") -> AuditAction | None:
    """Return the AuditAction for value, or None if outside the taxonomy."""
    if isinstance(value, AuditAction):
        return value
    try:
        return AuditAction(value)
    except ValueError:
        return None
