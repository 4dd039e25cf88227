"""
Request Gate Middleware Module - Black Box Interface

Purpose: Pass/fail gate applied before any room logic runs
Interface: RequestGateMiddleware, create_request_gate()
Hidden: Rate limit counters, body size checks, security headers

Completely independent of room logic; can be swapped for a gateway or
reverse-proxy policy.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


class RequestGateMiddleware:
    """
    Configurable request gate for FastAPI applications.

    Rejects oversized bodies, rate limits clients per window when enabled and
    stamps security headers on every response.
    """

    def __init__(
        self,
        redis_client=None,
        rate_limit_enabled: bool = False,
        window_seconds: int = 60,
        max_requests: int = 60,
        max_body_size: int = 1024,
        path_prefix: str = "/api",
    ):
        """
        Initialize request gate.

        Args:
            redis_client: Async Redis client for rate limit counters
            rate_limit_enabled: Whether to enforce the rate limit (production only)
            window_seconds: Rate limit window length
            max_requests: Requests allowed per client per window
            max_body_size: Largest accepted Content-Length in bytes
            path_prefix: Only paths under this prefix are gated
        """
        self.redis = redis_client
        self.rate_limit_enabled = rate_limit_enabled
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_body_size = max_body_size
        self.path_prefix = path_prefix

    def client_key(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        return request.client.host if request.client else "unknown"

    def format_error(self, status_code: int, message: str) -> Dict[str, Any]:
        return {"error": message, "status": status_code}

    def body_too_large(self, request: Request) -> bool:
        content_length = request.headers.get("content-length")
        if not content_length:
            return False
        try:
            return int(content_length) > self.max_body_size
        except ValueError:
            return True

    async def over_rate_limit(self, request: Request) -> bool:
        """Count this request; fail open if the store is unreachable."""
        if not self.rate_limit_enabled:
            return False

        # Fall back to the client created at startup
        redis = self.redis or getattr(request.app.state, "redis_client", None)
        if redis is None:
            return False

        key = f"rate_limit:{self.client_key(request)}"
        try:
            current = await redis.incr(key)
            if current == 1:
                await redis.pexpire(key, self.window_seconds * 1000)
            return current > self.max_requests
        except RedisError as e:
            logger.error(f"Rate limiter error, allowing request: {e}")
            return False

    def _apply_headers(self, response):
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    async def __call__(self, request: Request, call_next):
        """Process the request through the gate."""
        if not request.url.path.startswith(self.path_prefix):
            return self._apply_headers(await call_next(request))

        if self.body_too_large(request):
            logger.warning(f"Rejected oversized body on {request.method} {request.url.path}")
            return self._apply_headers(
                JSONResponse(status_code=413, content=self.format_error(413, "Payload too large"))
            )

        if await self.over_rate_limit(request):
            logger.warning(f"Rate limit exceeded for {self.client_key(request)}")
            return self._apply_headers(
                JSONResponse(status_code=429, content=self.format_error(429, "Too many requests"))
            )

        return self._apply_headers(await call_next(request))


def create_request_gate(config, redis_client: Optional[Any] = None) -> RequestGateMiddleware:
    """
    Factory function to create the request gate from configuration.

    Rate limiting is only enforced in production.
    """
    return RequestGateMiddleware(
        redis_client=redis_client,
        rate_limit_enabled=config.get("environment") == "production",
        window_seconds=config.get("rate_limit_window"),
        max_requests=config.get("rate_limit_max_requests"),
        max_body_size=config.get("max_body_size"),
    )


__all__ = ["RequestGateMiddleware", "create_request_gate", "SECURITY_HEADERS"]
