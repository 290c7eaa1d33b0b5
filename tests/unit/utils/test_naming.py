from event_relay.utils.naming import event_for_channel, room_for_user


def test_room_for_user():
    assert room_for_user("userA") == "user:userA"


def test_event_for_channel():
    assert event_for_channel("game1") == "game1-update"
