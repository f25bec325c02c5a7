"""
Metrics API endpoints.

Week-over-week KPI cards for the dashboard header.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from sysaid_proxy.models.analytics import ErrorResponse, WeeklyMetricsResponse
from sysaid_proxy.services import analytics
from sysaid_proxy.services.exceptions import error_response
from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/metrics", tags=["metrics"])

WEEKLY_SAMPLE_LIMIT = 100


@router.get("/weekly", response_model=WeeklyMetricsResponse, responses={500: {"model": ErrorResponse}})
async def get_weekly_metrics(
    status: str = Query("open", description="open, closed or all"),
    client: SysAidClient = Depends(get_sysaid_client),
):
    """
    Get weekly KPIs.

    Only ``mttr`` (mean age of tickets touched this week vs. last week) is
    computed from SysAid data; satisfaction, SLA breach rate and incident
    ratio are placeholder values.
    """
    try:
        body = await client.search_service_records(limit=WEEKLY_SAMPLE_LIMIT)
        records = analytics.filter_by_status(analytics.records_from(body), status)
        return {"success": True, "data": analytics.compute_weekly_metrics(records, analytics.now_ms())}
    except Exception as e:
        logger.error("Weekly metrics failed: %s", e)
        return error_response(e)
