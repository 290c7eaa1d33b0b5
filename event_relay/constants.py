"""
Protocol constants for the event relay.

These values are shared by the binding side (persistent connections) and
the dispatching side (trigger requests). They must not be configurable
per process: a room prefix that differs between the two sides makes every
binding unreachable.
"""

# ============================================================================
# Naming Conventions
# ============================================================================

# Prefix applied to a target identity to build its room key
ROOM_PREFIX = "user:"

# Suffix appended to a channel (game) id to build the outbound event name
EVENT_SUFFIX = "-update"


# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# Inbound control event binding a connection to an identity
AUTHENTICATE_EVENT = "authenticate"

# Outbound confirmation sent once a connection is bound
AUTHENTICATED_EVENT = "authenticated"

# WebSocket close code for policy violations (RFC 6455 standard)
# Used when rejecting connections from origins that are not allowed
WS_POLICY_VIOLATION_CODE = 1008

# WebSocket close code asking the client to retry later
# Used when a connection arrives before the registry is initialized
WS_TRY_AGAIN_LATER_CODE = 1013


# ============================================================================
# Relay Responses
# ============================================================================

RELAY_STATUS_SUCCESS = "success"

RELAY_NOT_READY_MESSAGE = "Socket server not ready"


# ============================================================================
# Logging
# ============================================================================

# Maximum size of one JSON log line accepted by Loki
LOKI_MAX_LOG_SIZE_BYTES = 65536
