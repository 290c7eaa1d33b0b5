"""
WebSocket message envelopes.

Every frame is a JSON object naming an event. Inbound frames carry a
single ``data`` value; outbound frames carry ``args``, the positional
arguments of the emit.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from typing_extensions import Annotated


class InboundMessage(BaseModel):
    event: Annotated[str, Field(min_length=1)]
    data: Any = None


class AuthenticatePayload(BaseModel):
    """
    Payload of the ``authenticate`` control event.

    ``gameId`` is logged for context only; the binding key is derived from
    ``userId`` alone.
    """

    model_config = ConfigDict(frozen=True)

    userId: Annotated[StrictStr, Field(min_length=1)]
    gameId: Annotated[StrictStr, Field(min_length=1)]


class OutboundEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: str
    args: list[Any] = []
