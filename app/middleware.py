"""Request metrics middleware."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.telemetry.metrics import http_request_duration, http_requests_total

logger = logging.getLogger("app.middleware")

_SKIP_PATHS = {"/metrics", "/openapi.json", "/docs", "/redoc"}


def _endpoint_label(request: Request) -> str:
    """Route template (``/auth/diagnose``) rather than the raw path, to bound label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        labels = {
            "method": request.method,
            "endpoint": _endpoint_label(request),
            "status_code": str(response.status_code),
        }
        http_request_duration.labels(**labels).observe(elapsed)
        http_requests_total.labels(**labels).inc()

        if response.status_code >= 500:
            logger.warning(
                "%s %s -> %d in %.3fs",
                request.method, request.url.path, response.status_code, elapsed,
            )
        return response
