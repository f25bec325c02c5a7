"""
Exceptions raised while talking to the SysAid Connect API, plus the
uniform JSON error envelope returned to dashboard clients.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi.responses import JSONResponse


class SysAidError(Exception):
    """Base class for failures reaching SysAid."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class TokenAcquisitionError(SysAidError):
    """The access-token request failed; no upstream call can proceed."""


class UpstreamError(SysAidError):
    """A Connect API data request failed or SysAid was unreachable."""


def error_response(exc: Exception) -> JSONResponse:
    """Build the HTTP 500 envelope every handler returns on failure."""
    details = exc.body if isinstance(exc, SysAidError) else None
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(exc),
            "details": details,
        },
    )
