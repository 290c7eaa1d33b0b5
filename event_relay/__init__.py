# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from event_relay.exceptions import RelayError
from event_relay.logging import logger
from event_relay.managers.connection_registry import ConnectionRegistry
from event_relay.middlewares.correlation_id import CorrelationIDMiddleware
from event_relay.middlewares.prometheus import PrometheusMiddleware
from event_relay.routing import collect_subrouters
from event_relay.settings import app_settings


def startup(app: FastAPI) -> None:
    """
    Application startup handler.

    Creates the connection registry and attaches it to ``app.state``; from
    this point on trigger requests are relayed and connections accepted.
    """
    logger.info("Application startup initiated")
    app.state.registry = ConnectionRegistry()
    logger.info(
        f"Relay ready on {app_settings.HOST}:{app_settings.PORT} "
        f"(websocket path {app_settings.WS_PATH})"
    )


def shutdown(app: FastAPI) -> None:
    """
    Application shutdown handler.

    Detaches the registry so late trigger requests answer "not ready"
    instead of relaying into connections that are being torn down.
    """
    logger.info("Application shutdown initiated")
    registry: ConnectionRegistry | None = getattr(app.state, "registry", None)
    if registry is not None:
        stats = registry.stats()
        logger.info(
            f"Dropping registry with {stats['connections']} connections "
            f"in {stats['rooms']} rooms"
        )
    app.state.registry = None
    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    startup(app)
    try:
        yield
    finally:
        shutdown(app)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Converts a RelayError into ``{"error": message}`` with its HTTP status."""
    return JSONResponse({"error": exc.message}, status_code=exc.http_status)


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    - Lifespan handler owning the connection registry
    - Routers collected by ``collect_subrouters()``: the trigger endpoint,
      health, metrics and the WebSocket consumer
    - Exception handler turning RelayError into JSON error responses
    - Middlewares: CORS, correlation ID, Prometheus
    """
    app = FastAPI(
        title="Event relay",
        description="Relays trigger requests to live WebSocket connections",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(collect_subrouters())
    app.add_exception_handler(RelayError, relay_error_handler)

    # Middlewares (execute in REVERSE order of registration)
    # Execution flow: CORSMiddleware → CorrelationIDMiddleware → PrometheusMiddleware
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ALLOWED_ORIGINS,
        allow_methods=app_settings.CORS_ALLOWED_METHODS,
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    return app


app = application()  # Need for fastapi cli
