from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ytparty.models.state import VideoMetadata
from ytparty.services.media import FetchError
from ytparty.services.relay import BroadcastRelay
from ytparty.services.room import RoomRegistry


class FakeServer:
    """Records what the relay registers and emits instead of talking to sockets."""

    def __init__(self):
        self.handlers = {}
        self.emitted = []
        self.sid_rooms = {}

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def enter_room(self, sid, room, namespace=None):
        self.sid_rooms[sid] = room

    async def emit(self, event, data=None, to=None, room=None, skip_sid=None, namespace=None, callback=None):
        self.emitted.append({"event": event, "data": data, "room": room, "skip_sid": skip_sid})

    def received_by(self, sid, event=None):
        room = self.sid_rooms.get(sid)
        return [
            e for e in self.emitted
            if e["room"] == room and e["skip_sid"] != sid and (event is None or e["event"] == event)
        ]


VIDEO = {"id": "dQw4w9WgXcQ", "title": "T", "author": "A", "thumbnail": "u"}


class FakeClient:
    """Stands in for socketio.AsyncClient."""

    def __init__(self):
        self.handlers = {}
        self.connected = True
        self.connect = AsyncMock()
        self.disconnect = AsyncMock()
        self.emit = AsyncMock()
        self.call = AsyncMock(return_value={"success": True})

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler


class FakePlayer:
    def __init__(self, video_id=None, state=-1, current_time=0.0, duration=0.0, title=None, author=None):
        self.video_id = video_id
        self.state_code = state
        self.current_time = current_time
        self.duration = duration
        self.title = title
        self.author = author
        self.calls = []

    def load(self, video_id):
        self.calls.append(("load", video_id))
        self.video_id = video_id
        self.state_code = 3

    def play(self):
        self.calls.append(("play",))
        self.state_code = 1

    def pause(self):
        self.calls.append(("pause",))
        self.state_code = 2

    def seek_to(self, seconds):
        self.calls.append(("seek_to", seconds))
        self.current_time = seconds

    def get_state(self):
        return self.state_code

    def get_current_time(self):
        return self.current_time

    def get_duration(self):
        return self.duration

    def get_video_data(self):
        return {"video_id": self.video_id, "title": self.title, "author": self.author}


class StubFetcher:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    async def __call__(self, video_id):
        self.calls.append(video_id)
        if self.fail:
            raise FetchError("boom")
        return VideoMetadata(id=video_id, title="T", author="A", thumbnail="u")


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> RoomRegistry:
    return RoomRegistry(clock=clock)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def relay(server, registry, fetcher) -> BroadcastRelay:
    return BroadcastRelay(server, registry, fetcher)


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()
