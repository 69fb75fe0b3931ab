from ytparty.services.room import ROOM_TTL


def test_created_room_is_empty(registry, clock):
    room_id = registry.create_room()
    room = registry.get_room(room_id)

    assert room.id == room_id
    assert room.state is None
    assert len(room.queue) == 0
    assert room.created_at == clock.now


def test_room_ids_are_unique(registry):
    ids = {registry.create_room() for _ in range(50)}

    assert len(ids) == 50


def test_unknown_room_is_none(registry):
    registry.create_room()

    assert registry.get_room("not-a-room") is None
    assert registry.get_room(None) is None
    assert registry.get_room("") is None


def test_clean_is_skipped_within_retention_window(registry, clock):
    room_id = registry.create_room()
    clock.advance(ROOM_TTL - 1)

    assert registry.clean_if_necessary() is False
    assert registry.get_room(room_id) is not None


def test_clean_runs_once_per_window_and_removes_only_old_rooms(registry, clock):
    old_id = registry.create_room()
    clock.advance(ROOM_TTL - 60)
    young_id = registry.create_room()
    clock.advance(60)

    assert registry.clean_if_necessary() is True
    assert registry.get_room(old_id) is None
    assert registry.get_room(young_id) is not None

    clock.advance(ROOM_TTL - 1)
    assert registry.clean_if_necessary() is False
    assert registry.get_room(young_id) is not None

    clock.advance(1)
    assert registry.clean_if_necessary() is True
    assert registry.get_room(young_id) is None
    assert len(registry) == 0
