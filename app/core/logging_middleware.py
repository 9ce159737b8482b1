"""
Request logging middleware.

Logs each API request with a request id and its duration, and echoes the
request id back in `X-Request-Id` so error bodies and logs can be joined.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("docledger.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured request/response logging with timing."""

    EXCLUDE_PATHS = {
        "/healthz",
        "/health",
        "/favicon.ico",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.EXCLUDE_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "owner_id": request.headers.get("X-Owner-Id"),
            "client_ip": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed: %s %s -> 500 (%.2fms) - %s",
                request.method, path, duration_ms, str(e),
                extra={**log_data, "status_code": 500, "duration_ms": round(duration_ms, 2)},
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_data.update({
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        })

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "Request completed: %s %s -> %d (%.2fms)",
            request.method, path, response.status_code, duration_ms,
            extra=log_data,
        )

        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
