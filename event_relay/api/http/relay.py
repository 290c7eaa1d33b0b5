"""Trigger endpoint: relays one event to every connection of a target."""

import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from event_relay.dependencies import DispatcherDep
from event_relay.schemas.relay import ErrorResponse, RelayRequest, RelayResponse

router = APIRouter()


async def read_body(request: Request) -> Any:
    """
    Read the opaque request body that travels with the event.

    JSON bodies are decoded, any other body is passed on as text.

    Args:
        request: The incoming HTTP request.

    Returns:
        The decoded body, or None when the body is empty.

    Raises:
        HTTPException: 400 if a JSON body cannot be decoded.
    """
    raw = await request.body()
    if not raw:
        return None

    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";")[0].strip().lower()
    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            return json.loads(raw)
        except ValueError as ex:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid JSON body: {ex}",
            ) from ex

    return raw.decode("utf-8", errors="replace")


@router.post(
    "/{target_id}/{game_id}/{event_name}/{value_data}",
    response_model=RelayResponse,
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Relay an event to a target's live connections",
    tags=["relay"],
)
async def relay_event(
    target_id: str,
    game_id: str,
    event_name: str,
    value_data: str,
    request: Request,
    dispatcher: DispatcherDep,
) -> RelayResponse:
    """
    Relay an event to every connection bound to ``target_id``.

    Connections receive ``<game_id>-update`` with the payload
    ``{eventName, valueData, targetId}`` followed by the request body.
    A target without live connections is not an error: the response is
    ``{"status": "success", "sentTo": 0}``.

    Returns:
        RelayResponse: Number of connections the event was sent to.
        503 Service Unavailable if the connection subsystem is not ready.
    """
    relay_request = RelayRequest(
        target_id=target_id,
        game_id=game_id,
        event_name=event_name,
        value_data=value_data,
        body=await read_body(request),
    )
    return await dispatcher.dispatch(relay_request)
