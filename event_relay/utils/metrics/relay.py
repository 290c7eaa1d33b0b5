"""Prometheus metrics for trigger request dispatching."""

from event_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_histogram,
)

relay_requests_total = _get_or_create_counter(
    "relay_requests_total",
    "Total trigger requests handled by the relay",
    ["status"],  # success, not_ready
)

relay_recipients = _get_or_create_histogram(
    "relay_recipients",
    "Number of connections targeted per relayed event",
    buckets=(0, 1, 2, 5, 10, 25, 50, 100),
)

relay_dispatch_duration_seconds = _get_or_create_histogram(
    "relay_dispatch_duration_seconds",
    "Time spent fanning one event out to its room",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

__all__ = [
    "relay_requests_total",
    "relay_recipients",
    "relay_dispatch_duration_seconds",
]
