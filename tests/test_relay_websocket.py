"""
WebSocket endpoint tests.

This module tests connection acceptance, the authenticate handshake and
the handling of malformed inbound frames.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocket, WebSocketDisconnect

from event_relay.api.ws.consumers.relay import Relay
from event_relay.api.ws.websocket import is_origin_allowed
from event_relay.logging import get_log_context
from event_relay.managers.binding_handler import BindingHandler
from event_relay.managers.connection_registry import (
    ConnectionHandle,
    ConnectionState,
)


class TestAuthenticateHandshake:
    def test_authenticate_is_confirmed(self, client, app):
        with client.websocket_connect("/ws") as ws:
            ws.send_json(
                {"event": "authenticate", "data": {"userId": "userA", "gameId": "game1"}}
            )

            assert ws.receive_json() == {
                "event": "authenticated",
                "args": [{"userId": "userA", "gameId": "game1", "room": "user:userA"}],
            }
            assert len(app.state.registry.lookup("user:userA")) == 1

    def test_anonymous_connection_is_tracked_but_unbound(self, client, app):
        with client.websocket_connect("/ws"):
            # Round trip through a bind on a second connection so the first
            # connection's accept has been processed
            with client.websocket_connect("/ws") as other:
                other.send_json(
                    {"event": "authenticate", "data": {"userId": "u", "gameId": "g"}}
                )
                other.receive_json()

                assert app.state.registry.stats() == {
                    "connections": 2,
                    "bound_connections": 1,
                    "rooms": 1,
                }

    @pytest.mark.parametrize(
        "frame",
        [
            {"event": "authenticate", "data": {"gameId": "game1"}},
            {"event": "authenticate", "data": {"userId": "userA"}},
            {"event": "authenticate", "data": "userA"},
            {"event": "authenticate"},
            {"data": {"userId": "userA", "gameId": "game1"}},
            ["authenticate"],
            {"event": "chat", "data": "hello"},
        ],
    )
    def test_malformed_or_unknown_messages_are_ignored(self, client, app, frame):
        with client.websocket_connect("/ws") as ws:
            ws.send_json(frame)
            ws.send_json(
                {"event": "authenticate", "data": {"userId": "userB", "gameId": "g"}}
            )

            # The connection survived and the first frame bound nothing
            assert ws.receive_json()["args"][0]["userId"] == "userB"
            assert app.state.registry.lookup("user:userA") == ()

    def test_non_json_frames_are_ignored(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            ws.send_bytes(b"\x00\x01")
            ws.send_json(
                {"event": "authenticate", "data": {"userId": "userA", "gameId": "g"}}
            )

            assert ws.receive_json()["event"] == "authenticated"


class TestConnectionAcceptance:
    def test_rejects_disallowed_origin(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(
                "/ws", headers={"origin": "http://evil.example"}
            ):
                pass

        assert exc_info.value.code == 1008

    def test_accepts_allowed_origin(self, client):
        with client.websocket_connect(
            "/ws", headers={"origin": "http://localhost:3000"}
        ) as ws:
            ws.send_json(
                {"event": "authenticate", "data": {"userId": "userA", "gameId": "g"}}
            )
            assert ws.receive_json()["event"] == "authenticated"

    def test_rejects_connection_before_startup(self, not_ready_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with not_ready_client.websocket_connect("/ws"):
                pass

        assert exc_info.value.code == 1013


class TestIsOriginAllowed:
    def test_missing_origin_is_allowed(self):
        assert is_origin_allowed(None) is True

    def test_configured_origin_is_allowed(self):
        assert is_origin_allowed("http://localhost:3000") is True

    def test_unknown_origin_is_rejected(self):
        assert is_origin_allowed("http://evil.example") is False

    def test_wildcard_allows_everything(self, monkeypatch):
        from event_relay.settings import app_settings

        monkeypatch.setattr(app_settings, "CORS_ALLOWED_ORIGINS", ["*"])

        assert is_origin_allowed("http://evil.example") is True


class TestEndpointLifecycle:
    """Lifecycle hooks called directly, without a transport."""

    @pytest.mark.asyncio
    async def test_disconnect_unbinds(self, registry):
        scope = {"type": "websocket"}
        endpoint = Relay(scope=scope, receive=None, send=None)  # type: ignore
        handle = ConnectionHandle(MagicMock())
        endpoint.handle = handle
        endpoint.binding_handler = BindingHandler(registry)
        endpoint.binding_handler.authenticate(
            handle, {"userId": "userA", "gameId": "g"}
        )

        await endpoint.on_disconnect(MagicMock(), 1001)

        assert handle.state is ConnectionState.CLOSED
        assert registry.lookup("user:userA") == ()

    @pytest.mark.asyncio
    async def test_disconnect_of_rejected_connection_is_noop(self):
        scope = {"type": "websocket"}
        endpoint = Relay(scope=scope, receive=None, send=None)  # type: ignore

        # Should not raise exception
        await endpoint.on_disconnect(MagicMock(), 1000)

    @pytest.mark.asyncio
    async def test_unknown_event_is_not_routed(self, registry):
        scope = {"type": "websocket"}
        endpoint = Relay(scope=scope, receive=None, send=None)  # type: ignore
        websocket = MagicMock()
        websocket.send_json = AsyncMock()
        endpoint.handle = ConnectionHandle(websocket)
        endpoint.binding_handler = BindingHandler(registry)

        await endpoint.on_receive(websocket, {"event": "ping", "data": None})

        websocket.send_json.assert_not_awaited()
        assert endpoint.handle.state is ConnectionState.ANONYMOUS


class TestEndpointDispatch:
    """The full dispatch loop driven over a scripted ASGI transport."""

    @staticmethod
    def make_scope(registry):
        return {
            "type": "websocket",
            "path": "/ws",
            "headers": [],
            "query_string": b"",
            "app": SimpleNamespace(state=SimpleNamespace(registry=registry)),
        }

    @pytest.mark.asyncio
    async def test_dispatch_binds_and_unbinds_connection(self, registry):
        inbound = iter(
            [
                {"type": "websocket.connect"},
                {
                    "type": "websocket.receive",
                    "text": json.dumps(
                        {
                            "event": "authenticate",
                            "data": {"userId": "userC", "gameId": "g9"},
                        }
                    ),
                },
                {"type": "websocket.disconnect", "code": 1001},
            ]
        )
        sent = []
        bound_during_session = []

        async def receive():
            return next(inbound)

        async def send(message):
            sent.append(message)
            if message["type"] == "websocket.send":
                bound_during_session.append(len(registry.lookup("user:userC")))
                bound_during_session.append(dict(get_log_context()))

        endpoint = Relay(scope=self.make_scope(registry), receive=receive, send=send)
        await endpoint.dispatch()

        assert Relay.websocket_class is WebSocket
        assert [message["type"] for message in sent] == [
            "websocket.accept",
            "websocket.send",
        ]
        assert json.loads(sent[1]["text"])["event"] == "authenticated"
        assert bound_during_session[0] == 1
        assert bound_during_session[1] == {
            "connection_id": endpoint.handle.connection_id,
            "room": "user:userC",
        }
        assert registry.lookup("user:userC") == ()
        assert endpoint.handle.state is ConnectionState.CLOSED
        assert get_log_context() == {}
