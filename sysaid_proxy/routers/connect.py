"""
Read-only passthrough to the SysAid Connect API.

``GET /api/connect/<path>`` is forwarded as ``GET /connect/v1/<path>``
with the cached bearer token; the query string is forwarded unchanged.
Paths that would resolve outside /connect/v1 are refused with the error
envelope.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request

from sysaid_proxy.models.analytics import ErrorResponse, RawDataResponse
from sysaid_proxy.services.exceptions import error_response
from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connect", tags=["connect"])


@router.get("/{resource_path:path}", response_model=RawDataResponse, responses={500: {"model": ErrorResponse}})
async def proxy_connect(
    resource_path: str,
    request: Request,
    client: SysAidClient = Depends(get_sysaid_client),
):
    # Re-encode each decoded segment so "?" or "#" cannot end the path early
    endpoint = "/" + "/".join(quote(segment, safe="") for segment in resource_path.split("/"))
    if request.url.query:
        endpoint = f"{endpoint}?{request.url.query}"

    try:
        data = await client.call(endpoint)
        return {"success": True, "data": data}
    except Exception as e:
        logger.error("Connect passthrough %s failed: %s", endpoint, e)
        return error_response(e)
