"""
Shared fixtures for the proxy tests.

Provides:
  • mock_settings – Settings rebuilt from the dummy env vars below
  • FakeSysAidClient – SysAidClient whose Connect calls are served from a dict
  • fake_client – a FakeSysAidClient with no canned responses
  • test_client – FastAPI TestClient with the SysAid client dependency overridden
  • upstream_urls – swaps in a real SysAidClient over httpx.MockTransport and
    records every URL it requests
  • make_record – builder for SysAid service-record dicts
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

# ── Ensure the package is importable without installation ─────────
_REPO_ROOT = str(Path(__file__).resolve().parent.parent)
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)


# ═══════════════════════════════════════════════════════════════════
# Environment — set dummy env vars BEFORE importing app modules
# ═══════════════════════════════════════════════════════════════════

_DUMMY_ENV = {
    "APP_ENV": "test",
    "LOG_LEVEL": "WARNING",
    "ALLOWED_ORIGINS": "https://dashboard.example.com",
    "SYSAID_BASE_URL": "https://sysaid.test",
    "SYSAID_ACCOUNT_ID": "test-account",
    "SYSAID_CLIENT_ID": "test-client-id",
    "SYSAID_CLIENT_SECRET": "test-client-secret",
}

# Direct assignment so values from a developer shell don't leak into tests
for k, v in _DUMMY_ENV.items():
    os.environ[k] = v

from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client  # noqa: E402

DAY_MS = 24 * 60 * 60 * 1000
NOW_MS = 1_760_000_000_000.0


class FakeSysAidClient(SysAidClient):
    """
    SysAidClient that answers Connect paths from ``responses``.

    Values that are exceptions are raised instead of returned. Paths are
    matched exactly first, then without their query string.
    """

    def __init__(self, responses: dict | None = None) -> None:
        super().__init__(
            base_url="https://sysaid.test",
            account_id="test-account",
            client_id="test-client-id",
            client_secret="test-client-secret",
            http_client=MagicMock(),
        )
        self.responses = responses or {}
        self.calls: list[str] = []
        self.token_requests = 0

    async def _request_token(self) -> tuple[str, float]:
        self.token_requests += 1
        return "fake-token", 3600

    async def call(self, resource_path: str):
        self.url_for(resource_path)
        await self.token_cache.get_token()
        self.calls.append(resource_path)
        if resource_path in self.responses:
            result = self.responses[resource_path]
        else:
            result = self.responses.get(resource_path.split("?", 1)[0], [])
        if isinstance(result, Exception):
            raise result
        return result


# ═══════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture()
def mock_settings():
    """Return a Settings instance built from the dummy environment."""
    from sysaid_proxy.config import get_settings
    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture()
def fake_client():
    return FakeSysAidClient()


@pytest.fixture()
def test_client(mock_settings, fake_client):
    """
    FastAPI TestClient whose handlers talk to ``fake_client``.

    The lifespan still runs (and builds a real client) but every route
    resolves the SysAid client through the overridden dependency.
    """
    from fastapi.testclient import TestClient
    from sysaid_proxy.main import app

    app.dependency_overrides[get_sysaid_client] = lambda: fake_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def upstream_urls(test_client):
    """Route the app through a real SysAidClient; yields the URLs it requested."""
    from sysaid_proxy.main import app

    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        if request.url.path == "/connect/v1/access-tokens":
            return httpx.Response(200, json={"token": "real-token", "expiresIn": 3600})
        return httpx.Response(200, json=[])

    client = SysAidClient(
        base_url="https://sysaid.test",
        account_id="test-account",
        client_id="test-client-id",
        client_secret="test-client-secret",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    app.dependency_overrides[get_sysaid_client] = lambda: client
    yield urls


@pytest.fixture()
def make_record():
    """Build a service-record dict with sensible defaults."""
    def _make(**overrides):
        record = {
            "id": 1,
            "status": 1,
            "priority": 3,
            "assignee": None,
            "requestUser": None,
            "insertTime": NOW_MS - DAY_MS,
            "updateTime": NOW_MS - DAY_MS,
        }
        record.update(overrides)
        return record
    return _make
