"""
Prometheus metrics for persistent connection monitoring.

This module defines metrics for tracking WebSocket connections, bindings
and per-connection send failures.
"""

from event_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
)

# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total WebSocket connections",
    ["status"],  # accepted, rejected_origin, rejected_not_ready
)

ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total WebSocket messages received"
)

ws_bindings_total = _get_or_create_counter(
    "ws_bindings_total",
    "Total authenticate requests handled",
    ["status"],  # bound, rejected
)

ws_send_failures_total = _get_or_create_counter(
    "ws_send_failures_total",
    "Total failed sends to individual connections during broadcast",
)


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_bindings_total",
    "ws_send_failures_total",
]
