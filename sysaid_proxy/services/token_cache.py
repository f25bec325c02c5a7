"""
Access-token cache for the SysAid Connect API.

One instance lives for the whole process (owned by the SysAidClient that
the FastAPI lifespan creates). A token is reused until ``expires_at``,
which is set ``expiry_margin_seconds`` before the lifetime SysAid reports
so that in-flight requests never carry an expired token.

Refreshes are single-flight: the first caller on an empty or expired
cache performs the acquisition while concurrent callers wait on the lock
and then reuse its result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_MARGIN_SECONDS = 300

# Returns (token, lifetime in seconds)
TokenAcquirer = Callable[[], Awaitable[tuple[str, float]]]


@dataclass
class CachedToken:
    value: Optional[str] = None
    expires_at: Optional[float] = None

    def is_valid(self, now: float) -> bool:
        return self.value is not None and self.expires_at is not None and now < self.expires_at


class TokenCache:
    def __init__(
        self,
        acquire: TokenAcquirer,
        clock: Callable[[], float] = time.time,
        expiry_margin_seconds: float = DEFAULT_EXPIRY_MARGIN_SECONDS,
    ) -> None:
        self._acquire = acquire
        self._clock = clock
        self._margin = expiry_margin_seconds
        self._cached = CachedToken()
        self._lock = asyncio.Lock()

    @property
    def has_token(self) -> bool:
        """True once any token has been stored."""
        return self._cached.value is not None

    @property
    def expires_at(self) -> Optional[float]:
        return self._cached.expires_at

    async def get_token(self) -> str:
        """Return a valid token, acquiring a new one on miss or expiry."""
        if self._cached.is_valid(self._clock()):
            return self._cached.value  # type: ignore[return-value]

        async with self._lock:
            # Another caller may have refreshed while we waited
            if self._cached.is_valid(self._clock()):
                return self._cached.value  # type: ignore[return-value]

            token, expires_in = await self._acquire()
            acquired_at = self._clock()
            self._cached = CachedToken(
                value=token,
                expires_at=acquired_at + (float(expires_in) - self._margin),
            )
            logger.info(
                "Access token refreshed (lifetime=%ss, cached for %ss).",
                expires_in, float(expires_in) - self._margin,
            )
            return token

    def invalidate(self) -> None:
        """Forget the cached token."""
        self._cached = CachedToken()
