"""Structured logging middleware."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

# Polled by load balancers; logged at debug to keep request logs readable
QUIET_PATHS = frozenset({"/health", "/api/health", "/api/health/ready"})


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One ``request_started`` and one ``request_completed`` event per request.

    Request id, method and path are bound to structlog's context so that
    service-layer events logged during the request carry them too.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        path = request.url.path
        log = logger.debug if path in QUIET_PATHS else logger.info

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=getattr(request.state, "request_id", "unknown"),
            method=request.method,
            path=path,
        )
        log("request_started")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("request_failed", error=str(exc), duration_ms=_elapsed_ms(start))
            raise

        duration_ms = _elapsed_ms(start)
        log("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        response.headers["X-Process-Time"] = str(duration_ms)
        return response
