"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the connection registry, fake
connections and FastAPI test clients.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocket

from event_relay import application
from event_relay.logging import clear_log_context
from event_relay.managers.binding_handler import BindingHandler
from event_relay.managers.connection_registry import (
    ConnectionHandle,
    ConnectionRegistry,
)


@pytest.fixture(autouse=True)
def reset_log_context():
    """Keeps connection log fields from leaking between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def registry():
    """
    Provides an empty connection registry.

    Returns:
        ConnectionRegistry: Fresh registry instance.
    """
    return ConnectionRegistry()


@pytest.fixture
def make_handle():
    """
    Factory for connection handles backed by a mock WebSocket.

    The mock's ``send_json`` is an AsyncMock, so sends can be asserted or
    made to fail through ``side_effect``.

    Returns:
        Callable[[str | None], ConnectionHandle]: Handle factory.
    """

    def factory(connection_id: str | None = None) -> ConnectionHandle:
        websocket = MagicMock(spec=WebSocket)
        websocket.send_json = AsyncMock()
        return ConnectionHandle(websocket, connection_id=connection_id)

    return factory


@pytest.fixture
def binding_handler(registry):
    """
    Provides a binding handler on the shared registry.

    Args:
        registry: Registry fixture.

    Returns:
        BindingHandler: Handler bound to ``registry``.
    """
    return BindingHandler(registry)


@pytest.fixture
def app():
    """
    Create a fresh FastAPI application.

    Returns:
        FastAPI: FastAPI application instance.
    """
    return application()


@pytest.fixture
def client(app):
    """
    Test client with the lifespan running, so the registry exists.

    Args:
        app: FastAPI application fixture.

    Yields:
        TestClient: FastAPI test client instance.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def not_ready_client(app):
    """
    Test client without lifespan: the registry was never created.

    Args:
        app: FastAPI application fixture.

    Returns:
        TestClient: FastAPI test client instance.
    """
    return TestClient(app)
