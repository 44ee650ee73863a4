"""Write-Path Context — composition root wires one shared registry."""

from uuid import uuid4

from writepath.config import Settings
from writepath.core.domain_types import AuditAction, DomainEvent
from writepath.core.invalidation_rules import QueryKeys
from writepath.infrastructure.memory_cache import InMemoryCacheBackend
from writepath.schemas.audit import AuditLogEntryInput
from writepath.services.write_path_context import build_write_path_context
from tests.fakes import CountingLoader, FakeNavigationRuntime, MemoryRecordStore


def build(runtime=None, store=None):
    backend = InMemoryCacheBackend(CountingLoader())
    ctx = build_write_path_context(
        backend,
        runtime or FakeNavigationRuntime(history_length=2),
        store or MemoryRecordStore(),
        settings=Settings(navigation_flush_timeout_seconds=0.5),
    )
    return ctx, backend


def test_contexts_are_independent():
    first, _ = build()
    second, _ = build()
    first.registry.register("m")
    assert second.registry.pending_count() == 0


async def test_mutation_then_navigation_end_to_end(record_store):
    runtime = FakeNavigationRuntime(history_length=2)
    ctx, backend = build(runtime=runtime, store=record_store)
    ctx.navigation.record_visit("/orders")
    ctx.navigation.record_visit("/orders/1")
    await backend.read(QueryKeys.ORDERS)
    order_id = uuid4()

    async def update_order():
        return {"id": order_id}

    result = await ctx.coordinator.run(
        update_order,
        DomainEvent.ORDER_CHANGE,
        audit=AuditLogEntryInput(order_id=order_id, action=AuditAction.ORDER_UPDATED),
    )
    outcome = await ctx.navigation.safe_navigate_back("/dashboard")

    assert result.is_ok()
    assert backend.is_stale(QueryKeys.ORDERS)
    assert outcome.went_back is True
    assert outcome.flushed is True
    assert runtime.calls == [("back", None)]
    assert len(await ctx.audit.history(order_id)) == 1
