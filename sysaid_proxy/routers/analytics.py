"""
Analytics API endpoints.

Provides the aggregated distributions and rankings behind the dashboard's
overview charts.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from sysaid_proxy.models.analytics import AnalyticsOverviewResponse, ErrorResponse
from sysaid_proxy.services import analytics
from sysaid_proxy.services.exceptions import error_response
from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get(
    "/overview",
    response_model=AnalyticsOverviewResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_overview(
    limit: int = Query(100, description="Service records to fetch"),
    status: str = Query("open", description="open, closed or all"),
    client: SysAidClient = Depends(get_sysaid_client),
):
    """
    Get assignee / priority distributions and top-N rankings.

    Service records, agents and end users are fetched concurrently; if any
    one of them fails the whole request fails.
    """
    try:
        records_body, agents_body, end_users_body = await asyncio.gather(
            client.search_service_records(limit=limit),
            client.list_agents(),
            client.list_end_users(),
        )

        all_records = analytics.records_from(records_body)
        agents = analytics.build_directory(analytics.records_from(agents_body))
        end_users = analytics.build_directory(analytics.records_from(end_users_body))

        overview = analytics.build_overview(all_records, status, agents, end_users)
        return {"success": True, "data": overview}
    except Exception as e:
        logger.error("Analytics overview failed: %s", e)
        return error_response(e)
