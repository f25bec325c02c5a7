"""
SysAid Connect API client.

Every call goes through the process-wide TokenCache first and then issues
an authenticated GET against ``{base_url}/connect/v1{resource_path}``.
Response bodies are returned verbatim. Some endpoints return a bare list,
others a ``{"data": [...]}`` envelope, and callers decide how to read them.

Failures are never retried:
  • token request failed        → TokenAcquisitionError
  • data request failed / 4xx-5xx → UpstreamError (status code + body)
  • path with dot segments or a fragment → UpstreamError, before any request
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional
from urllib.parse import quote, unquote

import httpx
from fastapi import Request

from sysaid_proxy.config import Settings
from sysaid_proxy.services.exceptions import TokenAcquisitionError, UpstreamError
from sysaid_proxy.services.token_cache import DEFAULT_EXPIRY_MARGIN_SECONDS, TokenCache

logger = logging.getLogger(__name__)

CONNECT_PREFIX = "/connect/v1"
ACCOUNT_HEADER = "x-sysaid-accountid"

DEFAULT_TIMEOUT_SECONDS = 30.0

# Page sizes used by the dashboard endpoints
DEFAULT_AGENTS_LIMIT = 100
DEFAULT_END_USERS_LIMIT = 500


def _response_body(response: httpx.Response) -> Any:
    """Parsed JSON body, falling back to raw text (or None when empty)."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


class SysAidClient:
    def __init__(
        self,
        base_url: str,
        account_id: str,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        expiry_margin_seconds: float = DEFAULT_EXPIRY_MARGIN_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._account_id = account_id
        self._client_id = client_id
        self._client_secret = client_secret
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self.token_cache = TokenCache(
            self._request_token,
            clock=clock,
            expiry_margin_seconds=expiry_margin_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "SysAidClient":
        return cls(
            base_url=settings.connect_base_url,
            account_id=settings.sysaid_account_id,
            client_id=settings.sysaid_client_id,
            client_secret=settings.sysaid_client_secret,
            timeout=settings.sysaid_timeout_seconds,
            expiry_margin_seconds=settings.token_expiry_margin_seconds,
            **kwargs,
        )

    def url_for(self, resource_path: str) -> str:
        """Absolute Connect URL; refuses any path that resolves outside /connect/v1."""
        if not resource_path.startswith("/"):
            resource_path = "/" + resource_path
        path = resource_path.split("?", 1)[0]
        if "#" in resource_path or any(unquote(s) in (".", "..") for s in path.split("/")):
            raise UpstreamError(f"Invalid Connect API path: {resource_path}")

        url = f"{self.base_url}{CONNECT_PREFIX}{resource_path}"
        root = httpx.URL(f"{self.base_url}{CONNECT_PREFIX}/").path
        if not httpx.URL(url).path.startswith(root):
            raise UpstreamError(f"Invalid Connect API path: {resource_path}")
        return url

    # ═══════════════════════════════════════════════════════════════
    # Authentication
    # ═══════════════════════════════════════════════════════════════

    async def _request_token(self) -> tuple[str, float]:
        """POST client credentials to the access-token endpoint."""
        url = self.url_for("/access-tokens")
        headers = {
            ACCOUNT_HEADER: self._account_id,
            "Content-Type": "application/json",
        }
        payload = {"clientId": self._client_id, "clientSecret": self._client_secret}

        try:
            response = await self._http.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Access token request to %s failed: %s", url, e)
            raise TokenAcquisitionError(f"Access token request failed: {e}") from e

        body = _response_body(response)
        if response.is_error:
            raise TokenAcquisitionError(
                f"Access token request returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        if not isinstance(body, dict) or not body.get("token"):
            raise TokenAcquisitionError(
                "Access token response did not contain a token",
                status_code=response.status_code,
                body=body,
            )

        return body["token"], float(body.get("expiresIn") or 0)

    # ═══════════════════════════════════════════════════════════════
    # Data requests
    # ═══════════════════════════════════════════════════════════════

    async def call(self, resource_path: str) -> Any:
        """GET a Connect API resource and return its parsed body."""
        url = self.url_for(resource_path)
        token = await self.token_cache.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        try:
            response = await self._http.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to {resource_path} failed: {e}") from e

        body = _response_body(response)
        if response.is_error:
            raise UpstreamError(
                f"Request to {resource_path} returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        logger.debug("GET %s → %d", resource_path, response.status_code)
        return body

    async def search_service_records(self, limit: int = 100) -> Any:
        return await self.call(f"/service-records/search?limit={limit}")

    async def list_service_records(self, limit: int = 100, offset: int = 0) -> Any:
        return await self.call(f"/service-records?limit={limit}&offset={offset}")

    async def list_agents(self, limit: int = DEFAULT_AGENTS_LIMIT) -> Any:
        return await self.call(f"/agents?limit={limit}")

    async def list_end_users(self, limit: int = DEFAULT_END_USERS_LIMIT) -> Any:
        return await self.call(f"/end-users?limit={limit}")

    async def get_action_items(self, record_id: str) -> Any:
        return await self.call(f"/service-records/{quote(str(record_id), safe='')}/action-items")

    async def aclose(self) -> None:
        await self._http.aclose()


def get_sysaid_client(request: Request) -> SysAidClient:
    """FastAPI dependency returning the process-wide client created at startup."""
    return request.app.state.sysaid_client
