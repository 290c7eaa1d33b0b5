"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from event_relay.dependencies import RegistryDep

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    connections: int = 0
    bound_connections: int = 0
    rooms: int = 0


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(
    response: Response, registry: RegistryDep
) -> HealthResponse:
    """
    Check whether the connection subsystem is up.

    Returns:
        HealthResponse: Registry statistics while healthy.
        Returns 503 Service Unavailable before startup completes.
    """
    if registry is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="unavailable")

    return HealthResponse(status="healthy", **registry.stats())
