"""
Prometheus metrics definitions.

Metrics are organized into submodules by subsystem (HTTP, WebSocket,
relay) and re-exported here:

    from event_relay.utils.metrics import relay_requests_total
"""

from event_relay.utils.metrics.http import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from event_relay.utils.metrics.relay import (
    relay_dispatch_duration_seconds,
    relay_recipients,
    relay_requests_total,
)
from event_relay.utils.metrics.websocket import (
    ws_bindings_total,
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_send_failures_total,
)

__all__ = [
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "http_requests_total",
    "relay_dispatch_duration_seconds",
    "relay_recipients",
    "relay_requests_total",
    "ws_bindings_total",
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_send_failures_total",
]
