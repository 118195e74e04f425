"""HTTP middleware: fixed-window rate limiting, body size limit, security headers."""

import logging
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .errors import RateLimitError

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "cross-origin",
    "X-DNS-Prefetch-Control": "off",
}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class FixedWindowRateLimiter:
    """Allows max_requests per key in each window of window_seconds."""

    def __init__(self, max_requests: int, window_seconds: int, message: str = "", clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message or "Too many requests, please try again later"
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        """Forget keys whose window has ended. Runs at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def hit(self, key: str) -> None:
        """Count one request for key. Raises RateLimitError once over the limit."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {key} ({count}/{self.max_requests})")
            raise RateLimitError(self.message)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies one limiter to every request under a path prefix."""

    def __init__(self, app: ASGIApp, limiter: FixedWindowRateLimiter, prefix: str = "/api"):
        super().__init__(app)
        self.limiter = limiter
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.prefix):
            try:
                self.limiter.hit(client_ip(request))
            except RateLimitError as e:
                return JSONResponse(status_code=e.status_code, content={"message": e.message})
        return await call_next(request)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose body is larger than max_bytes.

    Bodies sent without Content-Length (chunked) are read and measured.
    """

    def __init__(self, app: ASGIApp, max_bytes: int = MAX_BODY_BYTES):
        super().__init__(app)
        self.max_bytes = max_bytes

    def _too_large(self) -> JSONResponse:
        return JSONResponse(status_code=413, content={"message": "Request body too large"})

    async def dispatch(self, request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit():
            if int(length) > self.max_bytes:
                return self._too_large()
        elif request.method in ("POST", "PUT", "PATCH"):
            # Starlette caches the body, so the route can still read it
            if len(await request.body()) > self.max_bytes:
                return self._too_large()
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
