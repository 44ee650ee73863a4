"""Invalidation Rules — maps a domain write-event to the cache keys it makes stale.

Invariants:
    - resolve() is pure and deterministic: same event, same ordered tuple
    - Each event maps to a fixed, ordered tuple of key patterns
    - Unknown events raise UnknownDomainEventError (never an empty result)

Design Decisions:
    - Rule table built from the QueryKeys catalogue so views and rules share one
      source of key shapes
    - Tuples, not lists: callers cannot mutate the shared rule table
"""

from types import MappingProxyType

from writepath.core.domain_types import CacheKey, DomainEvent
from writepath.core.errors import UnknownDomainEventError


class QueryKeys:
    """Hierarchical cache keys for every cached read-view."""

    # Auth
    AUTH_USER: CacheKey = ("auth", "user")
    AUTH_PROFILE: CacheKey = ("auth", "profile")

    # Customers
    CUSTOMERS: CacheKey = ("customers",)

    @staticmethod
    def customer(customer_id: str) -> CacheKey:
        return ("customers", "detail", customer_id)

    @staticmethod
    def customer_orders(customer_id: str) -> CacheKey:
        return ("customers", customer_id, "orders")

    # Catalog
    CATALOG: CacheKey = ("catalog",)
    CATALOG_ITEMS: CacheKey = ("catalog", "items")
    CATALOG_CATEGORIES: CacheKey = ("catalog", "categories")

    @staticmethod
    def catalog_item(item_id: str) -> CacheKey:
        return ("catalog", "item", item_id)

    # Orders
    ORDERS: CacheKey = ("orders",)
    ORDERS_ENHANCED: CacheKey = ("orders", "enhanced")

    @staticmethod
    def order(order_id: str) -> CacheKey:
        return ("orders", "detail", order_id)

    # Manufacturing & design
    MANUFACTURING_QUEUE: CacheKey = ("manufacturing", "queue")
    MANUFACTURING_WORKLOAD: CacheKey = ("manufacturing", "workload")
    DESIGN_QUEUE: CacheKey = ("design", "queue")
    DESIGN_WORKLOAD: CacheKey = ("design", "workload")

    # Team
    TEAM: CacheKey = ("team",)
    TEAM_WORKLOAD: CacheKey = ("team", "workload")
    TEAM_USERS: CacheKey = ("team", "users")

    # Admin
    ADMIN_USERS: CacheKey = ("admin", "users")
    ADMIN_CUSTOMERS: CacheKey = ("admin", "customers")


INVALIDATION_RULES = MappingProxyType({
    DomainEvent.CUSTOMER_CHANGE: (
        QueryKeys.CUSTOMERS,
        QueryKeys.ADMIN_CUSTOMERS,
    ),
    DomainEvent.CATALOG_CHANGE: (
        QueryKeys.CATALOG,
        QueryKeys.CATALOG_ITEMS,
    ),
    DomainEvent.ORDER_CHANGE: (
        QueryKeys.ORDERS,
        QueryKeys.ORDERS_ENHANCED,
    ),
    DomainEvent.TEAM_CHANGE: (
        QueryKeys.TEAM,
        QueryKeys.TEAM_WORKLOAD,
        QueryKeys.MANUFACTURING_WORKLOAD,
        QueryKeys.DESIGN_WORKLOAD,
    ),
})


def resolve(domain_event: DomainEvent | str) -> tuple[CacheKey, ...]:
    """Ordered cache-key patterns to invalidate after domain_event."""
    try:
        event = DomainEvent(domain_event)
    except ValueError:
        raise UnknownDomainEventError(str(domain_event)) from None
    keys = INVALIDATION_RULES.get(event)
    if keys is None:
        raise UnknownDomainEventError(event.value)
    return keys


def key_matches(pattern: CacheKey, key: CacheKey) -> bool:
    """True when pattern is a prefix of key (hierarchical match)."""
    return len(pattern) <= len(key) and tuple(key[:len(pattern)]) == tuple(pattern)
