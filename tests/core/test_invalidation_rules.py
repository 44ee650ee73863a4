"""Invalidation Rules — tests for domain-event → cache-key resolution.

Tests cover:
    - Every DomainEvent has a rule; unknown events raise
    - resolve() is deterministic and order-preserving
    - Hierarchical prefix matching
"""

import pytest

from writepath.core.domain_types import DomainEvent
from writepath.core.errors import UnknownDomainEventError
from writepath.core.invalidation_rules import (
    INVALIDATION_RULES, QueryKeys, key_matches, resolve,
)


def test_every_domain_event_has_a_rule():
    assert set(INVALIDATION_RULES) == set(DomainEvent)


@pytest.mark.parametrize("event", list(DomainEvent))
def test_resolve_is_deterministic(event):
    assert resolve(event) == resolve(event)
    assert resolve(event) is resolve(event.value)


def test_customer_change_keys_in_order():
    assert resolve("onCustomerChange") == (
        ("customers",),
        ("admin", "customers"),
    )


def test_team_change_covers_all_workload_views():
    assert resolve(DomainEvent.TEAM_CHANGE) == (
        QueryKeys.TEAM,
        QueryKeys.TEAM_WORKLOAD,
        QueryKeys.MANUFACTURING_WORKLOAD,
        QueryKeys.DESIGN_WORKLOAD,
    )


def test_unknown_event_raises():
    with pytest.raises(UnknownDomainEventError) as exc:
        resolve("onInvoiceChange")
    assert exc.value.domain_event == "onInvoiceChange"
    assert exc.value.code == "UNKNOWN_DOMAIN_EVENT"


def test_resolved_keys_cannot_be_mutated():
    keys = resolve(DomainEvent.ORDER_CHANGE)
    with pytest.raises(TypeError):
        keys[0] = ("tampered",)  # type: ignore[index]


def test_prefix_pattern_matches_nested_keys():
    assert key_matches(("orders",), QueryKeys.order("o1"))
    assert key_matches(("orders",), ("orders",))
    assert not key_matches(("orders", "enhanced"), ("orders",))
    assert not key_matches(("catalog",), ("customers", "detail", "c1"))
