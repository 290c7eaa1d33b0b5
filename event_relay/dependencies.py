"""
Dependency injection configuration for FastAPI.

The registry is owned by the running application (``app.state.registry``,
created in the lifespan handler) and handed to endpoints through these
dependencies instead of living in a module-level global.

Example:
    ```python
    @router.post("/...")
    async def relay_event(dispatcher: DispatcherDep) -> RelayResponse:
        return await dispatcher.dispatch(...)
    ```
"""

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from event_relay.managers.connection_registry import ConnectionRegistry
from event_relay.managers.relay_dispatcher import RelayDispatcher


def get_registry(connection: HTTPConnection) -> ConnectionRegistry | None:
    """
    Get the registry of the running application.

    Args:
        connection: The current request or WebSocket connection.

    Returns:
        The registry, or None before startup / after shutdown.
    """
    return getattr(connection.app.state, "registry", None)


RegistryDep = Annotated[ConnectionRegistry | None, Depends(get_registry)]


def get_dispatcher(registry: RegistryDep) -> RelayDispatcher:
    """
    Get a dispatcher bound to the application's registry.

    Args:
        registry: Registry injected by FastAPI.

    Returns:
        RelayDispatcher instance.
    """
    return RelayDispatcher(registry)


DispatcherDep = Annotated[RelayDispatcher, Depends(get_dispatcher)]
