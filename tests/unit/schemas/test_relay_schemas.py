"""Tests for relay request/response and WebSocket message models."""

import pytest
from pydantic import ValidationError

from event_relay.schemas.messages import InboundMessage, OutboundEvent
from event_relay.schemas.relay import RelayRequest, RelayResponse


class TestRelayRequest:
    def test_body_defaults_to_none(self):
        request = RelayRequest(
            target_id="u", game_id="g", event_name="e", value_data="v"
        )

        assert request.body is None

    @pytest.mark.parametrize("field", ["target_id", "game_id", "event_name"])
    def test_empty_identifiers_are_rejected(self, field):
        data = {
            "target_id": "u",
            "game_id": "g",
            "event_name": "e",
            "value_data": "v",
        }
        data[field] = ""

        with pytest.raises(ValidationError):
            RelayRequest(**data)

    def test_request_is_frozen(self):
        request = RelayRequest(
            target_id="u", game_id="g", event_name="e", value_data="v"
        )

        with pytest.raises(ValidationError):
            request.target_id = "other"


class TestRelayResponse:
    def test_default_status_is_success(self):
        assert RelayResponse(sentTo=3).model_dump() == {
            "status": "success",
            "sentTo": 3,
        }

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            RelayResponse(sentTo=-1)


class TestMessages:
    def test_inbound_requires_event(self):
        with pytest.raises(ValidationError):
            InboundMessage.model_validate({"data": {}})

    def test_inbound_data_is_optional(self):
        assert InboundMessage.model_validate({"event": "ping"}).data is None

    def test_outbound_dump(self):
        event = OutboundEvent(event="g-update", args=[{"a": 1}, "text"])

        assert event.model_dump(mode="json") == {
            "event": "g-update",
            "args": [{"a": 1}, "text"],
        }
