"""
Request rate limiting for the Produce Store API

A sliding window of request timestamps is kept per client key in memory.
Every worker process counts on its own.
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional, Tuple

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class RateLimiter:
    """Sliding-window counter keyed by client identifier"""

    def __init__(self, sweep_interval: int = 60):
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._sweep_interval = sweep_interval
        self._last_sweep = time.monotonic()

    def _sweep(self, now: float, horizon: int):
        if now - self._last_sweep < self._sweep_interval:
            return

        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= now - horizon:
                hits.popleft()
            if not hits:
                del self._hits[key]

        self._last_sweep = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60,
        now: Optional[float] = None
    ) -> Tuple[bool, int, int]:
        """
        Record a hit for identifier if it fits in the window.

        Returns:
            (allowed, remaining, retry_after_seconds)
        """
        now = time.monotonic() if now is None else now
        self._sweep(now, window_seconds * 2)

        hits = self._hits[identifier]
        while hits and hits[0] <= now - window_seconds:
            hits.popleft()

        if len(hits) >= max_requests:
            retry_after = int(hits[0] + window_seconds - now) + 1
            return False, 0, retry_after

        hits.append(now)
        return True, max_requests - len(hits), 0

    def reset(self):
        self._hits.clear()


rate_limiter = RateLimiter()

# Requests per minute
RATE_LIMITS = {
    "authenticated": 600,
    "unauthenticated": 120,
}

UNLIMITED_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def client_key(request: Request) -> Tuple[str, bool]:
    """Identify the caller by bearer token when present, otherwise by IP"""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return f"jwt:{hash(auth_header)}", True
    return f"ip:{get_client_ip(request)}", False


def limit_headers(limit: int, retry_after: int) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": "0",
        "Retry-After": str(retry_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Global per-client limit: 600 req/min with a bearer token, 120 req/min
    per IP without one. Health and docs paths and CORS preflights are not
    counted.
    """

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        key, authenticated = client_key(request)
        limit = RATE_LIMITS["authenticated" if authenticated else "unauthenticated"]
        allowed, remaining, retry_after = rate_limiter.is_allowed(key, limit)

        if not allowed:
            # A response, not an exception, so the CORS middleware still wraps it
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Please slow down."},
                headers=limit_headers(limit, retry_after)
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def endpoint_rate_limit(max_requests: int, window_seconds: int = 60):
    """
    Dependency factory for a tighter limit on one route, counted apart
    from the global limit.

        @router.post("/quote")
        async def quote(_: None = Depends(endpoint_rate_limit(30))):
    """
    async def rate_limit_check(request: Request):
        key, _ = client_key(request)
        allowed, _, retry_after = rate_limiter.is_allowed(
            f"endpoint:{request.url.path}:{key}", max_requests, window_seconds
        )
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded for this endpoint. Try again in {retry_after} seconds.",
                headers=limit_headers(max_requests, retry_after)
            )

    return rate_limit_check
