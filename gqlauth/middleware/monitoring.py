"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from gqlauth.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "gqlauth_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "gqlauth_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Token lifecycle metrics
tokens_issued_total = Counter(
    "gqlauth_tokens_issued_total",
    "Total token pairs issued",
    ["source"]  # authenticate, refresh
)

tokens_revoked_total = Counter(
    "gqlauth_tokens_revoked_total",
    "Total access tokens revoked",
    ["scope"]  # current, all
)

authentication_failures_total = Counter(
    "gqlauth_authentication_failures_total",
    "Total authentication failures",
    ["kind"]  # login or the error kind raised
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id, "action": "http_request", "error": str(e)},
                exc_info=True
            )
            http_requests_total.labels(method=method, endpoint=endpoint, status=500).inc()
            raise

        duration = time.time() - start_time
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

        if duration > 1.0:
            logger.warning(
                f"Slow request detected: {method} {endpoint}",
                extra={"request_id": request_id, "action": "http_request", "duration": duration}
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def record_token_issued(source: str) -> None:
    """Record a token pair issued by login or refresh"""
    tokens_issued_total.labels(source=source).inc()


def record_token_revoked(scope: str, count: int = 1) -> None:
    """Record access token revocations"""
    tokens_revoked_total.labels(scope=scope).inc(count)


def record_auth_failure(kind: str) -> None:
    """Record authentication failure"""
    authentication_failures_total.labels(kind=kind).inc()
