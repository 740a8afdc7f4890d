from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("qrorder.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

# Health checks and metric scrapes are logged at debug.
_QUIET_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})
# Path parameters of the order routes that are copied onto the access log line.
_LOGGED_PATH_PARAMS = ("restaurant_id", "table_id", "order_id")
_UNMATCHED_PATH = "<unmatched>"


def route_template(request: Request) -> str:
    """Route template such as ``/v1/orders/{order_id}``, so order ids stay out of labels."""
    route = request.scope.get("route")
    return getattr(route, "path", _UNMATCHED_PATH)


def _path_param_fields(request: Request) -> dict[str, str]:
    params = request.scope.get("path_params") or {}
    return {name: str(params[name]) for name in _LOGGED_PATH_PARAMS if name in params}


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - started
            path = route_template(request)
            REQUEST_COUNT.labels(
                method=request.method, path=path, status_code=str(status_code)
            ).inc()
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(elapsed)

            fields = {
                "method": request.method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(elapsed * 1000, 2),
                **_path_param_fields(request),
            }
            if status_code >= 500:
                logger.error("request_failed", extra=fields)
            elif path in _QUIET_PATHS:
                logger.debug("request_complete", extra=fields)
            else:
                logger.info("request_complete", extra=fields)
