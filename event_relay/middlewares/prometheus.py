"""
Prometheus metrics middleware for HTTP requests.

Requests are labelled by route template (``/{target_id}/{game_id}/...``)
rather than by raw path, so every target identity does not become its own
time series.
"""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from event_relay.utils.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

UNMATCHED_ENDPOINT = "unmatched"


def get_endpoint_label(request: Request) -> str:
    """
    Resolve the route template the router matched for the request.

    The router records the matched route in the request scope, so this is
    only meaningful once the request has been handled.

    Args:
        request: The HTTP request after routing.

    Returns:
        The matched route's path template, or ``unmatched``.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track Prometheus metrics for HTTP requests.

    Tracks the following metrics:
    - http_requests_total: Counter of total requests by method, endpoint, and status
    - http_request_duration_seconds: Histogram of request durations
    - http_requests_in_progress: Gauge of in-progress requests by method
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Process the request and track metrics.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            HTTP response from the endpoint.
        """
        method = request.method

        http_requests_in_progress.labels(method=method).inc()
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = get_endpoint_label(request)
            http_request_duration_seconds.labels(
                method=method, endpoint=endpoint
            ).observe(time.time() - start_time)
            http_requests_total.labels(
                method=method, endpoint=endpoint, status_code=status_code
            ).inc()
            http_requests_in_progress.labels(method=method).dec()
