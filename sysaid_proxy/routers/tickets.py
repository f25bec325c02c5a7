"""
Ticket API endpoints.

Thin wrappers over SysAid service records: the raw list, the active-ticket
health snapshot and per-record action items.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from sysaid_proxy.models.analytics import (
    ActionItemsResponse,
    ActiveTicketsResponse,
    ErrorResponse,
    RawDataResponse,
)
from sysaid_proxy.services import analytics
from sysaid_proxy.services.exceptions import error_response
from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])

ACTIVE_SAMPLE_LIMIT = 100


# ═══════════════════════════════════════════════════════════════════
# GET /api/tickets — Raw service records
# ═══════════════════════════════════════════════════════════════════

@router.get("", response_model=RawDataResponse, responses={500: {"model": ErrorResponse}})
async def list_tickets(
    limit: int = Query(100),
    offset: int = Query(0),
    client: SysAidClient = Depends(get_sysaid_client),
):
    """Return one page of service records exactly as SysAid sends them."""
    try:
        records = await client.list_service_records(limit=limit, offset=offset)
        return {"success": True, "data": records}
    except Exception as e:
        logger.error("Failed to list tickets: %s", e)
        return error_response(e)


# ═══════════════════════════════════════════════════════════════════
# GET /api/tickets/active — Health of non-closed tickets
# ═══════════════════════════════════════════════════════════════════

@router.get("/active", response_model=ActiveTicketsResponse, responses={500: {"model": ErrorResponse}})
async def get_active_tickets(client: SysAidClient = Depends(get_sysaid_client)):
    """
    Get the share of active tickets that are overdue, open more than
    five days, or missing a due date.
    """
    try:
        body = await client.search_service_records(limit=ACTIVE_SAMPLE_LIMIT)
        snapshot = analytics.compute_active_snapshot(analytics.records_from(body), analytics.now_ms())
        return {"success": True, "data": snapshot}
    except Exception as e:
        logger.error("Active tickets failed: %s", e)
        return error_response(e)


# ═══════════════════════════════════════════════════════════════════
# GET /api/tickets/{ticket_id}/action-items
# ═══════════════════════════════════════════════════════════════════

@router.get(
    "/{ticket_id}/action-items",
    response_model=ActionItemsResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_action_items(ticket_id: str, client: SysAidClient = Depends(get_sysaid_client)):
    try:
        items = await client.get_action_items(ticket_id)
        count = len(items) if isinstance(items, list) else len(analytics.records_from(items))
        return {"success": True, "data": items, "count": count}
    except Exception as e:
        logger.error("Failed to fetch action items for %s: %s", ticket_id, e)
        return error_response(e)
