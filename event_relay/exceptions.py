"""
Custom exception classes for the event relay.

Every exception carries an ``http_status`` so the HTTP layer can turn it
into a response without knowing the concrete type.
"""

from event_relay.constants import RELAY_NOT_READY_MESSAGE


class RelayError(Exception):
    """
    Base exception class for all relay exceptions.

    Attributes:
        message: Human-readable error message.
        http_status: HTTP status code for REST API responses.
    """

    http_status: int = 500

    def __init__(self, message: str):
        """
        Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class RelayNotReadyError(RelayError):
    """
    Relay invoked before the connection subsystem exists.

    HTTP Status: 503 Service Unavailable
    """

    http_status = 503

    def __init__(self, message: str = RELAY_NOT_READY_MESSAGE):
        super().__init__(message)


class MalformedBindingError(RelayError):
    """
    Authenticate message is missing required fields.

    HTTP Status: 400 Bad Request
    """

    http_status = 400
