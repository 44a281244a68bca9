"""
Rate limiting for the Online Store API
Uses in-memory storage with sliding window algorithm
"""
import time
from typing import Dict, Tuple
from collections import defaultdict

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from storefront.core.config import settings


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    State is per process; several workers each keep their own counters.
    """

    def __init__(self):
        # {identifier: [(timestamp, count), ...]}
        self._requests: Dict[str, list] = defaultdict(list)
        self._last_cleanup = time.time()
        self._cleanup_interval = 60  # seconds

    def _cleanup_old_entries(self, window_seconds: int = 60):
        """Remove entries older than twice the window"""
        now = time.time()

        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - window_seconds * 2

        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [
                (ts, count) for ts, count in self._requests[identifier]
                if ts > cutoff
            ]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        self._cleanup_old_entries(window_seconds)

        now = time.time()
        window_start = now - window_seconds

        requests_in_window = [
            (ts, count) for ts, count in self._requests[identifier]
            if ts > window_start
        ]

        total_requests = sum(count for _, count in requests_in_window)

        if total_requests >= max_requests:
            if requests_in_window:
                oldest_timestamp = min(ts for ts, _ in requests_in_window)
                retry_after = int(oldest_timestamp + window_seconds - now) + 1
            else:
                retry_after = 1

            return False, 0, retry_after

        self._requests[identifier].append((now, 1))

        remaining = max_requests - total_requests - 1
        return True, remaining, 0

    def reset(self):
        """Forget every counter"""
        self._requests.clear()
        self._last_cleanup = time.time()


# Global rate limiter instance
rate_limiter = RateLimiter()


# Paths that are exempt from rate limiting
EXEMPT_PATHS = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def get_client_ip(request: Request) -> str:
    """Get the client IP, considering Cloudflare and other proxies"""
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # first IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Global limit for everything under /api/ (default 100 requests per 15
    minutes per client IP).

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - Retry-After: Seconds until a slot frees up (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in EXEMPT_PATHS or not path.startswith("/api/"):
            return await call_next(request)

        # CORS preflight
        if request.method == "OPTIONS":
            return await call_next(request)

        limit = settings.RATE_LIMIT_GLOBAL
        identifier = f"global:ip:{get_client_ip(request)}"

        is_allowed, remaining, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=limit,
            window_seconds=settings.RATE_LIMIT_GLOBAL_WINDOW
        )

        if not is_allowed:
            # JSONResponse rather than HTTPException so CORS headers still apply
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": "Too many requests from this IP, please try again after 15 minutes"},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response


def rate_limit(name: str, max_requests: int, window_seconds: int, message: str):
    """
    Dependency factory for per-endpoint limits keyed by client IP.

    Usage:
        login_limit = rate_limit("login", 5, 15 * 60, "Too many login attempts")

        @router.post("/login")
        async def login(payload: UserLogin, _: None = Depends(login_limit)):
            ...
    """
    async def rate_limit_check(request: Request) -> None:
        identifier = f"endpoint:{name}:ip:{get_client_ip(request)}"

        is_allowed, _, retry_after = rate_limiter.is_allowed(
            identifier=identifier,
            max_requests=max_requests,
            window_seconds=window_seconds
        )

        if not is_allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=message,
                headers={
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

    return rate_limit_check


login_rate_limit = rate_limit(
    "login",
    settings.RATE_LIMIT_LOGIN,
    settings.RATE_LIMIT_LOGIN_WINDOW,
    "Too many login attempts, please try again after 15 minutes"
)
register_rate_limit = rate_limit(
    "register",
    settings.RATE_LIMIT_REGISTER,
    settings.RATE_LIMIT_REGISTER_WINDOW,
    "Too many accounts created from this IP, please try again after an hour"
)
password_reset_rate_limit = rate_limit(
    "password-reset",
    settings.RATE_LIMIT_PASSWORD_RESET,
    settings.RATE_LIMIT_PASSWORD_RESET_WINDOW,
    "Too many password reset requests, please try again after an hour"
)
