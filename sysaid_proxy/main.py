"""
FastAPI application entry point for the SysAid Analytics Proxy.

Configures:
  • CORS middleware for the SharePoint (SPFx) dashboard
  • Lifespan events that create / close the shared SysAid client
  • API routers for analytics, tickets, metrics and the Connect passthrough
  • The 500 error envelope for malformed request parameters
  • Health check endpoint
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from sysaid_proxy.config import get_settings
from sysaid_proxy.models.analytics import HealthResponse
from sysaid_proxy.routers import analytics, connect, metrics, tickets
from sysaid_proxy.services.exceptions import error_response
from sysaid_proxy.services.sysaid_client import SysAidClient, get_sysaid_client

# ═══════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "SysAid Analytics Proxy"
VERSION = "0.1.0"

# SharePoint tenants plus local development servers on any port
SPFX_ORIGIN_REGEX = r"https://[A-Za-z0-9.-]+\.sharepoint\.com|http://(localhost|127\.0\.0\.1)(:\d+)?"


# ═══════════════════════════════════════════════════════════════════
# Lifespan — startup / shutdown
# ═══════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-wide SysAid client (and its token cache)."""
    # ── Startup ──
    logger.info("Starting %s (env=%s)...", SERVICE_NAME, settings.app_env)

    if not settings.sysaid_configured:
        logger.warning(
            "⚠️  SysAid credentials incomplete; upstream calls will fail. "
            "(base_url=%r, account_id=%s, client_id=%s, client_secret=%s)",
            settings.sysaid_base_url,
            "set" if settings.sysaid_account_id else "empty",
            "set" if settings.sysaid_client_id else "empty",
            "set" if settings.sysaid_client_secret else "empty",
        )

    app.state.sysaid_client = SysAidClient.from_settings(settings)
    logger.info("🚀 %s ready (upstream=%s).", SERVICE_NAME, settings.connect_base_url or "<unset>")

    yield

    # ── Shutdown ──
    logger.info("Shutting down %s...", SERVICE_NAME)
    await app.state.sysaid_client.aclose()
    logger.info("Shutdown complete.")


# ═══════════════════════════════════════════════════════════════════
# App Creation
# ═══════════════════════════════════════════════════════════════════

app = FastAPI(
    title=SERVICE_NAME,
    description=(
        "Read-only proxy in front of the SysAid Connect API. Caches the "
        "access token and serves dashboard-shaped ticket analytics."
    ),
    version=VERSION,
    lifespan=lifespan,
)


# ═══════════════════════════════════════════════════════════════════
# Middleware
# ═══════════════════════════════════════════════════════════════════

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_origin_regex=SPFX_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════════════
# Routers
# ═══════════════════════════════════════════════════════════════════

app.include_router(analytics.router)
app.include_router(tickets.router)
app.include_router(metrics.router)
app.include_router(connect.router)


# ═══════════════════════════════════════════════════════════════════
# Exception Handlers
# ═══════════════════════════════════════════════════════════════════

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed query parameters get the same 500 envelope as any other failure."""
    logger.error("Rejected %s: %s", request.url.path, exc)
    return error_response(exc)


# ═══════════════════════════════════════════════════════════════════
# Health Check
# ═══════════════════════════════════════════════════════════════════

@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check(client: SysAidClient = Depends(get_sysaid_client)):
    """Liveness probe; also reports whether an access token is cached."""
    return {"status": "ok", "tokenCached": client.token_cache.has_token}


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API info."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "docs": "/docs",
        "health": "/api/health",
    }
