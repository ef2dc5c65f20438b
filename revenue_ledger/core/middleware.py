"""Request middleware: correlation ids, access logging, response headers"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from revenue_ledger.core.logging import get_logger

logger = get_logger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one; echoed on the response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    One access log line per request.

    Mutating calls also log the acting user, so a ledger change can be
    traced from the access log to its audit entry.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"

        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time": elapsed,
            "correlation_id": getattr(request.state, "request_id", None),
        }
        if request.method in MUTATING_METHODS:
            extra["actor_id"] = request.headers.get("X-Actor-Id")
        logger.info(f"{request.method} {request.url.path} {response.status_code}", extra=extra)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers; ledger responses are never cached by intermediaries"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Cache-Control"] = "no-store"
        return response
