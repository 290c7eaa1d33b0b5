from typing import Any

from pydantic import ValidationError

from event_relay.exceptions import MalformedBindingError
from event_relay.logging import logger, set_log_context
from event_relay.managers.connection_registry import (
    ConnectionHandle,
    ConnectionRegistry,
    ConnectionState,
)
from event_relay.schemas.messages import AuthenticatePayload
from event_relay.utils.metrics import ws_bindings_total
from event_relay.utils.naming import room_for_user


def parse_authenticate_payload(data: Any) -> AuthenticatePayload:
    """
    Validates the payload of an ``authenticate`` event.

    Args:
        data: The raw ``data`` value of the inbound message.

    Returns:
        AuthenticatePayload: The validated payload.

    Raises:
        MalformedBindingError: If ``userId`` or ``gameId`` is missing or not a string.
    """
    try:
        return AuthenticatePayload.model_validate(data)
    except ValidationError as ex:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "payload"
            for error in ex.errors()
        )
        raise MalformedBindingError(
            f"Invalid authenticate payload ({fields})"
        ) from ex


class BindingHandler:
    """
    Translates connection lifecycle events into registry operations.

    Connection states move ``ANONYMOUS -> BOUND -> CLOSED`` or directly
    ``ANONYMOUS -> CLOSED``. Authenticating again while bound re-binds
    under the new identity.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    def connect(self, handle: ConnectionHandle) -> None:
        """Registers a newly accepted, still anonymous connection."""
        self.registry.register(handle)
        logger.info(f"[Connected] ID: {handle.connection_id}")

    def authenticate(
        self, handle: ConnectionHandle, data: Any
    ) -> AuthenticatePayload | None:
        """
        Binds the connection to the identity named in an authenticate message.

        A malformed payload is logged and ignored; the connection keeps its
        current state.

        Args:
            handle: The connection that sent the message.
            data: The raw ``data`` value of the message.

        Returns:
            The validated payload when the connection was bound, None otherwise.
        """
        if handle.state is ConnectionState.CLOSED:
            return None

        try:
            payload = parse_authenticate_payload(data)
        except MalformedBindingError as ex:
            ws_bindings_total.labels(status="rejected").inc()
            logger.warning(
                f"Ignoring authenticate from connection {handle.connection_id}: "
                f"{ex.message}"
            )
            return None

        room = room_for_user(payload.userId)
        self.registry.bind(room, handle)
        handle.state = ConnectionState.BOUND
        set_log_context(room=room)
        ws_bindings_total.labels(status="bound").inc()

        logger.info(
            f"[Auth] User: {payload.userId} | Game: {payload.gameId} | "
            f"Socket: {handle.connection_id}"
        )
        return payload

    def disconnect(
        self, handle: ConnectionHandle, close_code: int | None = None
    ) -> None:
        """Unbinds a closed connection. Safe to call more than once."""
        self.registry.unbind(handle)
        handle.state = ConnectionState.CLOSED
        logger.info(
            f"[Disconnected] ID: {handle.connection_id}"
            + (f" (code {close_code})" if close_code is not None else "")
        )
