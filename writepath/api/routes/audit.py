"""Audit Routes — HTTP surface over the order audit trail.

Invariants:
    - No route updates or deletes audit entries; the only write is a manual append
      through AuditLogWriter.append, tagged metadata.manual_entry = True
    - A manual entry with an action outside the taxonomy is rejected with 400
    - History is returned newest first; limits validated at the boundary
    - The AuditLogWriter comes from app.state (built in the lifespan), never a global

Design Decisions:
    - Thin routes: query validation here, ordering and aggregation in the writer
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from writepath.config import get_settings
from writepath.schemas.audit import (
    AuditHistoryResponse, AuditLogEntry, AuditLogEntryInput, AuditStatsResponse,
    RecentActivityResponse,
)
from writepath.services.audit_log_writer import AuditLogWriter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


def get_audit_writer(request: Request) -> AuditLogWriter:
    return request.app.state.audit_writer


@router.get("/orders/{order_id}/history", response_model=AuditHistoryResponse)
async def get_order_history(
    order_id: UUID,
    limit: int | None = Query(None, ge=1, le=500),
    writer: AuditLogWriter = Depends(get_audit_writer),
):
    limit = limit or get_settings().audit_history_default_limit
    entries = await writer.history(order_id, limit=limit, newest_first=True)
    return AuditHistoryResponse(
        order_id=order_id, total_entries=len(entries), data=entries,
    )


@router.get("/orders/{order_id}/stats", response_model=AuditStatsResponse)
async def get_order_stats(
    order_id: UUID, writer: AuditLogWriter = Depends(get_audit_writer),
):
    stats = await writer.stats(order_id)
    return AuditStatsResponse(
        order_id=order_id,
        total_changes=stats.total_changes,
        status_changes=stats.status_changes,
        assignments=stats.assignments,
        item_changes=stats.item_changes,
        last_activity=stats.last_activity,
        unique_users=stats.unique_users,
    )


@router.get("/recent-activity", response_model=RecentActivityResponse)
async def get_recent_activity(
    order_ids: list[UUID] | None = Query(None),
    hours_back: int = Query(24, ge=1, le=168),
    limit: int = Query(100, ge=1, le=200),
    writer: AuditLogWriter = Depends(get_audit_writer),
):
    entries = await writer.recent_activity(order_ids, hours_back=hours_back, limit=limit)
    return RecentActivityResponse(
        total_entries=len(entries),
        filters={
            "order_ids": [str(o) for o in order_ids or []],
            "hours_back": hours_back,
            "limit": limit,
        },
        data=entries,
    )


@router.post(
    "/manual-entry",
    response_model=AuditLogEntry,
    status_code=status.HTTP_201_CREATED,
)
async def create_manual_entry(
    body: AuditLogEntryInput, writer: AuditLogWriter = Depends(get_audit_writer),
):
    """Append an operator-written entry; the writer validates the action."""
    entry = body.model_copy(
        update={"metadata": {**(body.metadata or {}), "manual_entry": True}},
    )
    created = await writer.append(entry)
    logger.info(
        "Manual audit entry created",
        extra={"order_id": str(created.order_id), "action": created.action.value},
    )
    return created
