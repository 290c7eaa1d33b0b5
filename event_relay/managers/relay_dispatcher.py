import time

from event_relay.exceptions import RelayNotReadyError
from event_relay.logging import logger
from event_relay.managers.connection_registry import ConnectionRegistry
from event_relay.schemas.messages import OutboundEvent
from event_relay.schemas.relay import (
    RelayEventPayload,
    RelayRequest,
    RelayResponse,
)
from event_relay.utils.metrics import (
    relay_dispatch_duration_seconds,
    relay_recipients,
    relay_requests_total,
)
from event_relay.utils.naming import event_for_channel, room_for_user


class RelayDispatcher:
    """
    Turns a trigger request into a broadcast to the target's room.

    The dispatcher never waits for acknowledgements, never retries and
    never queues: an event for a target without live connections is
    dropped and reported as ``sentTo: 0``.
    """

    def __init__(self, registry: ConnectionRegistry | None) -> None:
        """
        Args:
            registry: The running application's registry, or None while the
                connection subsystem is not initialized.
        """
        self.registry = registry

    @property
    def ready(self) -> bool:
        return self.registry is not None

    async def dispatch(self, request: RelayRequest) -> RelayResponse:
        """
        Relays one event to every connection bound to the request's target.

        Args:
            request: The decoded trigger request.

        Returns:
            RelayResponse: Success with the number of targeted connections.

        Raises:
            RelayNotReadyError: If no registry is attached.
        """
        if self.registry is None:
            relay_requests_total.labels(status="not_ready").inc()
            logger.error(
                f"Relay for {request.target_id} rejected: connection subsystem not ready"
            )
            raise RelayNotReadyError()

        room = room_for_user(request.target_id)
        event = event_for_channel(request.game_id)

        if not self.registry.lookup(room):
            logger.warning(f"No active connections for {room}")

        message = OutboundEvent(
            event=event,
            args=[
                RelayEventPayload(
                    eventName=request.event_name,
                    valueData=request.value_data,
                    targetId=request.target_id,
                ).model_dump(),
                request.body,
            ],
        )

        start_time = time.time()
        sent_to = await self.registry.broadcast(room, message)
        relay_dispatch_duration_seconds.observe(time.time() - start_time)
        relay_recipients.observe(sent_to)
        relay_requests_total.labels(status="success").inc()

        logger.info(
            f"[Event Sent] Count {sent_to} Target: {request.target_id} | "
            f"Game: {request.game_id} | Event: {request.event_name} | "
            f"Data: {request.value_data}",
            extra={"room": room, "event": event, "sent_to": sent_to},
        )
        return RelayResponse(sentTo=sent_to)
