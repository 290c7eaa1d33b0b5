from fastapi import APIRouter
from starlette.websockets import WebSocket

from event_relay.api.ws.websocket import RelayWebSocketEndpoint
from event_relay.constants import AUTHENTICATE_EVENT, AUTHENTICATED_EVENT
from event_relay.logging import logger
from event_relay.schemas.messages import InboundMessage
from event_relay.settings import app_settings
from event_relay.utils.naming import room_for_user

router = APIRouter()


class Relay(RelayWebSocketEndpoint):
    """
    Persistent connection endpoint of the relay.

    Handles the ``authenticate`` control event, which binds the connection
    to ``user:<userId>`` and confirms with an ``authenticated`` event.
    Other inbound events are ignored.
    """

    async def on_event(
        self, websocket: WebSocket, message: InboundMessage
    ) -> None:
        if message.event != AUTHENTICATE_EVENT:
            await super().on_event(websocket, message)
            return

        payload = self.binding_handler.authenticate(self.handle, message.data)
        if payload is None:
            return

        logger.debug(
            f"Confirming authenticate for connection {self.handle.connection_id}"
        )
        await self.emit(
            AUTHENTICATED_EVENT,
            {
                "userId": payload.userId,
                "gameId": payload.gameId,
                "room": room_for_user(payload.userId),
            },
        )


router.add_websocket_route(app_settings.WS_PATH, Relay)
