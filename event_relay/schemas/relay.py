from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated

from event_relay.constants import RELAY_STATUS_SUCCESS

NonEmptyStr = Annotated[str, Field(min_length=1)]


class RelayRequest(BaseModel):
    """
    Decoded trigger request.

    Attributes:
        target_id: Identity whose connections receive the event.
        game_id: Channel the event belongs to; only shapes the event name.
        event_name: Application-level event name carried in the payload.
        value_data: Value carried in the payload, passed through as text.
        body: Arbitrary request body forwarded untouched.
    """

    model_config = ConfigDict(frozen=True)

    target_id: NonEmptyStr
    game_id: NonEmptyStr
    event_name: NonEmptyStr
    value_data: str
    body: Any = None


class RelayEventPayload(BaseModel):
    """First argument of an outbound relay event."""

    model_config = ConfigDict(frozen=True)

    eventName: str
    valueData: str
    targetId: str


class RelayResponse(BaseModel):
    status: str = RELAY_STATUS_SUCCESS
    sentTo: Annotated[int, Field(ge=0)]


class ErrorResponse(BaseModel):
    error: str
