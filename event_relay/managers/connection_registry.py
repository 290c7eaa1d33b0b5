import asyncio
import threading
import uuid
import weakref
from collections import deque
from enum import Enum

from starlette.websockets import WebSocket, WebSocketDisconnect

from event_relay.logging import logger
from event_relay.schemas.messages import OutboundEvent
from event_relay.utils.metrics import ws_send_failures_total


class ConnectionState(str, Enum):
    """Lifecycle of one persistent connection."""

    ANONYMOUS = "anonymous"
    BOUND = "bound"
    CLOSED = "closed"


class ConnectionHandle:
    """
    One live persistent connection.

    Owned by the transport endpoint that accepted the connection. The
    registry only keeps a weak reference to it.

    Attributes:
        connection_id: Unique identifier assigned when the connection is accepted.
        websocket: The transport connection messages are sent through.
        state: Where the connection is in its lifecycle.
    """

    def __init__(
        self, websocket: WebSocket, connection_id: str | None = None
    ) -> None:
        self.connection_id = connection_id or str(uuid.uuid4())
        self.websocket = websocket
        self.state = ConnectionState.ANONYMOUS

    async def send(self, message: OutboundEvent) -> None:
        """
        Sends one framed event to the remote party.

        Args:
            message: The event to send.
        """
        await self.websocket.send_json(message.model_dump(mode="json"))

    def __repr__(self) -> str:
        return f"ConnectionHandle({self.connection_id!r}, state={self.state.value})"


class ConnectionRegistry:
    """
    Registry mapping room keys to the connections currently bound to them.

    A connection is bound to at most one room at a time. Rooms exist only
    while they have members. Handles are held weakly: if a handle is
    garbage collected without being unbound, its binding is reaped on the
    next registry operation.

    Every mutation and every snapshot runs under one lock and never awaits,
    so the mapping is never observed half-updated. Sends happen outside the
    lock on a snapshot of the room.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: weakref.WeakValueDictionary[str, ConnectionHandle] = (
            weakref.WeakValueDictionary()
        )
        self._finalizers: dict[str, weakref.finalize] = {}
        # connection_id -> room
        self._bindings: dict[str, str] = {}
        # room -> connection_ids
        self._rooms: dict[str, set[str]] = {}
        # connection_ids whose handle was collected without unbind
        self._reaped: deque[str] = deque()

    def register(self, handle: ConnectionHandle) -> None:
        """
        Starts tracking an anonymous connection.

        Binding does this implicitly; registering up front makes the
        connection visible in ``stats()`` before it authenticates.

        Args:
            handle: The newly accepted connection.
        """
        with self._lock:
            self._reap()
            self._track(handle)

    def bind(self, room: str, handle: ConnectionHandle) -> None:
        """
        Binds a connection to a room.

        A connection already bound elsewhere is moved; binding a pair that
        already exists is a no-op.

        Args:
            room: Room key, e.g. ``user:42``.
            handle: The connection to bind.
        """
        with self._lock:
            self._reap()
            self._track(handle)

            connection_id = handle.connection_id
            current = self._bindings.get(connection_id)
            if current == room:
                return
            if current is not None:
                self._drop_binding(connection_id)

            self._bindings[connection_id] = room
            self._rooms.setdefault(room, set()).add(connection_id)

        logger.debug(
            f"Connection {connection_id} bound to {room}"
            + (f" (moved from {current})" if current else "")
        )

    def unbind(self, handle: ConnectionHandle) -> None:
        """
        Forgets a connection and removes it from its room, if any.

        Safe to call for connections that were never bound or were already
        unbound.

        Args:
            handle: The connection that closed.
        """
        connection_id = handle.connection_id
        with self._lock:
            self._reap()
            room = self._bindings.get(connection_id)
            self._forget(connection_id)

        if room is not None:
            logger.debug(f"Connection {connection_id} unbound from {room}")

    def lookup(self, room: str) -> tuple[ConnectionHandle, ...]:
        """
        Snapshot of the connections bound to a room.

        Args:
            room: Room key to look up.

        Returns:
            The bound connections; empty when nobody is bound.
        """
        with self._lock:
            self._reap()
            return tuple(
                handle
                for connection_id in self._rooms.get(room, ())
                if (handle := self._handles.get(connection_id)) is not None
            )

    def room_of(self, handle: ConnectionHandle) -> str | None:
        """Room the connection is currently bound to, if any."""
        with self._lock:
            self._reap()
            return self._bindings.get(handle.connection_id)

    def stats(self) -> dict[str, int]:
        """
        Registry statistics.

        Returns:
            dict[str, int]: ``connections`` tracked, ``bound_connections``
            and non-empty ``rooms``.
        """
        with self._lock:
            self._reap()
            return {
                "connections": len(self._handles),
                "bound_connections": len(self._bindings),
                "rooms": len(self._rooms),
            }

    async def broadcast(self, room: str, message: OutboundEvent) -> int:
        """
        Sends message to every connection bound to room, concurrently.

        A failed send is logged and does not affect the other recipients.
        Delivery is best effort: the result counts targeted connections,
        not confirmed receipts.

        Args:
            room: Room key to deliver to.
            message: The event to send.

        Returns:
            int: Number of connections the message was dispatched to.
        """
        handles = self.lookup(room)
        if not handles:
            return 0

        async def safe_send(handle: ConnectionHandle) -> None:
            try:
                await handle.send(message)
            except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
                # WebSocketDisconnect: Client disconnected
                # ConnectionError: Network errors
                # RuntimeError: WebSocket in invalid state
                ws_send_failures_total.inc()
                logger.warning(
                    f"Failed to send {message.event} to connection "
                    f"{handle.connection_id} in {room}: {e}"
                )
            except Exception as e:
                ws_send_failures_total.inc()
                logger.warning(
                    f"Unexpected error sending {message.event} to connection "
                    f"{handle.connection_id} in {room}: {e}"
                )

        await asyncio.gather(
            *[safe_send(handle) for handle in handles],
            return_exceptions=True,
        )
        return len(handles)

    def _track(self, handle: ConnectionHandle) -> None:
        connection_id = handle.connection_id
        if connection_id in self._handles:
            return
        self._handles[connection_id] = handle
        # deque.append is atomic, so the callback is safe to run at any point
        self._finalizers[connection_id] = weakref.finalize(
            handle, self._reaped.append, connection_id
        )

    def _forget(self, connection_id: str) -> None:
        self._handles.pop(connection_id, None)
        finalizer = self._finalizers.pop(connection_id, None)
        if finalizer is not None:
            finalizer.detach()
        self._drop_binding(connection_id)

    def _drop_binding(self, connection_id: str) -> None:
        room = self._bindings.pop(connection_id, None)
        if room is None:
            return
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    def _reap(self) -> None:
        while self._reaped:
            connection_id = self._reaped.popleft()
            self._finalizers.pop(connection_id, None)
            self._drop_binding(connection_id)
            logger.debug(
                f"Reaped connection {connection_id} collected without unbind"
            )
