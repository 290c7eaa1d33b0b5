"""Room and event naming shared by the binding handler and the dispatcher."""

from event_relay.constants import EVENT_SUFFIX, ROOM_PREFIX


def room_for_user(user_id: str) -> str:
    """Room key connections of ``user_id`` are bound under."""
    return f"{ROOM_PREFIX}{user_id}"


def event_for_channel(channel_id: str) -> str:
    """Outbound event name for updates on ``channel_id``."""
    return f"{channel_id}{EVENT_SUFFIX}"
