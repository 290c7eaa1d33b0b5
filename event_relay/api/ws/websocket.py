import json
from typing import Any

from pydantic import ValidationError
from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketState

from event_relay.constants import (
    WS_POLICY_VIOLATION_CODE,
    WS_TRY_AGAIN_LATER_CODE,
)
from event_relay.dependencies import get_registry
from event_relay.logging import clear_log_context, logger, set_log_context
from event_relay.managers.binding_handler import BindingHandler
from event_relay.managers.connection_registry import ConnectionHandle
from event_relay.schemas.messages import InboundMessage, OutboundEvent
from event_relay.settings import app_settings
from event_relay.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
)


def is_origin_allowed(origin: str | None) -> bool:
    """
    Check the Origin header of a WebSocket handshake.

    Non-browser clients send no Origin and are always allowed.

    Args:
        origin: Value of the Origin header, if any.

    Returns:
        bool: Whether the connection may proceed.
    """
    if not origin:
        return True
    allowed = app_settings.CORS_ALLOWED_ORIGINS
    return "*" in allowed or origin in allowed


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint managing one connection's relay lifecycle.

    Accepts the connection when its origin is allowed and the registry is
    ready, wraps it in a ConnectionHandle, and unbinds it on close whatever
    the cause. Subclasses route decoded inbound events in ``on_event``.
    """

    encoding = None
    websocket_class: type[WebSocket] = WebSocket

    handle: ConnectionHandle | None = None
    binding_handler: BindingHandler | None = None

    async def dispatch(self) -> None:
        """
        Manages the WebSocket connection lifecycle.

        1. Calls ``on_connect``; a rejected connection stops here.
        2. Receives messages until the client disconnects, decoding each
           one and handing it to ``on_receive``.
        3. Always calls ``on_disconnect``, including when the receive loop
           fails, so the registry never keeps a closed connection.
        """
        websocket = self.websocket_class(
            self.scope, receive=self.receive, send=self.send
        )
        await self.on_connect(websocket)
        if websocket.application_state != WebSocketState.CONNECTED:
            return

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> Any:
        """
        Decode an incoming text frame as JSON.

        Returns:
            The decoded JSON value, or None for binary or undecodable frames.
        """
        text = message.get("text")
        if text is None:
            logger.warning(
                f"Ignoring binary frame from connection {self._connection_id}"
            )
            return None

        try:
            return json.loads(text)
        except ValueError:
            logger.warning(
                f"Ignoring non-JSON frame from connection {self._connection_id}"
            )
            return None

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accepts the connection or rejects it.

        Connection is rejected if:
        - The Origin header names an origin that is not allowed (1008)
        - The registry is not initialized yet (1013)
        """
        origin = websocket.headers.get("origin")
        if not is_origin_allowed(origin):
            logger.warning(f"Rejecting WebSocket connection from origin {origin}")
            ws_connections_total.labels(status="rejected_origin").inc()
            await websocket.close(code=WS_POLICY_VIOLATION_CODE)
            return

        registry = get_registry(websocket)
        if registry is None:
            logger.warning(
                "Rejecting WebSocket connection: connection subsystem not ready"
            )
            ws_connections_total.labels(status="rejected_not_ready").inc()
            await websocket.close(code=WS_TRY_AGAIN_LATER_CODE)
            return

        await websocket.accept()

        self.handle = ConnectionHandle(websocket)
        set_log_context(connection_id=self.handle.connection_id)
        self.binding_handler = BindingHandler(registry)
        self.binding_handler.connect(self.handle)

        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        """
        Validates the message envelope and routes it to ``on_event``.

        Malformed envelopes are logged and ignored; the connection stays open.
        """
        ws_messages_received_total.inc()
        if data is None:
            return

        try:
            message = InboundMessage.model_validate(data)
        except ValidationError:
            logger.warning(
                f"Ignoring malformed message from connection {self._connection_id}: {data}"
            )
            return

        await self.on_event(websocket, message)

    async def on_event(
        self, websocket: WebSocket, message: InboundMessage
    ) -> None:
        logger.debug(
            f"Unhandled event {message.event} from connection {self._connection_id}"
        )

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        if self.handle is None or self.binding_handler is None:
            return

        self.binding_handler.disconnect(self.handle, close_code)
        ws_connections_active.dec()
        clear_log_context()

    async def emit(self, event: str, *args: Any) -> None:
        """Sends an event to this connection only."""
        if self.handle is not None:
            await self.handle.send(OutboundEvent(event=event, args=list(args)))

    @property
    def _connection_id(self) -> str:
        return self.handle.connection_id if self.handle else "-"
