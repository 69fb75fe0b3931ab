import json
import logging
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import parse_qs

from ytparty.models.room import Room
from ytparty.models.state import VideoMetadata
from ytparty.services.media import FetchError, fetch_video_metadata, is_valid_video_id
from ytparty.services.room import RoomRegistry
from ytparty.utils.queue import QueueError

logger = logging.getLogger(__name__)

ROOM_DOES_NOT_EXIST = "Room does not exist."
INVALID_VIDEO_ID = "Invalid video id."
FETCH_FAILED = "Failed to fetch video metadata."
INDEX_OUT_OF_BOUNDS = "Index is out of bounds."

MetadataFetcher = Callable[[str], Awaitable[VideoMetadata]]


def _fail(error: str) -> dict:
    return {"success": False, "error": error}


class BroadcastRelay:
    """
    Per-socket protocol handler. Validates room membership at connect time,
    answers sync requests and fans state, command and queue changes out to
    the other sockets of the room.
    """

    def __init__(self, sio, registry: RoomRegistry, fetch_metadata: MetadataFetcher = fetch_video_metadata):
        self.sio = sio
        self.registry = registry
        self.fetch_metadata = fetch_metadata
        # sid -> room id, filled on successful connect
        self.sid_room_map: Dict[str, str] = {}

        handlers = {
            "connect": self.connect,
            "disconnect": self.disconnect,
            "state:sync": self.state_sync,
            "state:report": self.state_report,
            "command": self.command,
            "queue:sync": self.queue_sync,
            "queue:addVideo": self.queue_add_video,
            "queue:removeVideo": self.queue_remove_video,
            "queue:moveVideo": self.queue_move_video,
            "queue:next": self.queue_next,
            "api:downloadVideoMetadata": self.api_download_video_metadata,
        }
        for event, handler in handlers.items():
            sio.on(event, handler)

    def _room_for(self, sid: str) -> Optional[Room]:
        return self.registry.get_room(self.sid_room_map.get(sid))

    async def _broadcast_queue(self, room: Room) -> None:
        # Whole room, requester included
        await self.sio.emit("queue:modified", room.queue_snapshot(), room=room.id)

    # Connection lifecycle

    async def connect(self, sid, environ, auth=None):
        query = parse_qs(environ.get("QUERY_STRING", ""))
        room_id = query.get("roomId", [None])[0]

        if not room_id or self.registry.get_room(room_id) is None:
            logger.info(f"Refusing client {sid}: unknown room {room_id!r}")
            return False

        self.sid_room_map[sid] = room_id
        await self.sio.enter_room(sid, room_id)
        logger.info(f"Client {sid} joined room {room_id}")

    async def disconnect(self, sid, reason=None):
        room_id = self.sid_room_map.pop(sid, None)
        logger.info(f"Client {sid} left room {room_id}")

    # State

    async def state_sync(self, sid):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)
        return {"success": True, "state": room.state}

    async def state_report(self, sid, state=None):
        room = self._room_for(sid)
        if room is None:
            return

        if not isinstance(state, dict):
            logger.error(f"Received invalid state for room {room.id}:\n{json.dumps(state, indent=4, default=str)}")
            return

        async with room.lock:
            room.state = state
            await self.sio.emit("state:report", state, room=room.id, skip_sid=sid)

    async def command(self, sid, name=None, arg=None):
        room = self._room_for(sid)
        if room is None:
            return
        await self.sio.emit("command", (name, arg), room=room.id, skip_sid=sid)

    # Queue

    async def queue_sync(self, sid):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)
        return {"success": True, "data": room.queue_snapshot()}

    async def queue_add_video(self, sid, video_id=None):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)

        if not is_valid_video_id(video_id):
            return _fail(INVALID_VIDEO_ID)

        async with room.queue_turns.ticket() as ticket:
            # Fetches overlap; enqueues follow arrival order
            try:
                video = await self.fetch_metadata(video_id)
            except FetchError as e:
                logger.warning(f"Could not add {video_id} to room {room.id}: {e}")
                return _fail(FETCH_FAILED)

            await ticket.turn()
            room.queue.enqueue(video)
            logger.info(f"Queued '{video.title}' ({video.id}) in room {room.id}")
            await self._broadcast_queue(room)
        return {"success": True}

    async def queue_remove_video(self, sid, index=None):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)

        async with room.queue_turns.ticket() as ticket:
            await ticket.turn()
            try:
                removed = room.queue.remove_item_at(index)
            except QueueError as e:
                logger.error(f"Bad queue index {index!r} for room {room.id}: {e}")
                return _fail(INDEX_OUT_OF_BOUNDS)
            logger.info(f"Removed '{removed.title}' from room {room.id}")
            await self._broadcast_queue(room)
        return {"success": True}

    async def queue_move_video(self, sid, index=None, new_position=None):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)

        async with room.queue_turns.ticket() as ticket:
            await ticket.turn()
            try:
                video = room.queue.item_at(index)
                room.queue.move_item(video, new_position)
            except QueueError as e:
                logger.error(f"Bad queue move {index!r} -> {new_position!r} for room {room.id}: {e}")
                return _fail(INDEX_OUT_OF_BOUNDS)
            await self._broadcast_queue(room)
        return {"success": True}

    async def queue_next(self, sid):
        room = self._room_for(sid)
        if room is None:
            return _fail(ROOM_DOES_NOT_EXIST)

        async with room.queue_turns.ticket() as ticket:
            await ticket.turn()
            video = room.queue.dequeue()
            if video is not None:
                await self._broadcast_queue(room)
        return {"success": True, "data": video.to_wire() if video else None}

    # Metadata proxy

    async def api_download_video_metadata(self, sid, video_id=None):
        if not is_valid_video_id(video_id):
            return _fail(INVALID_VIDEO_ID)

        try:
            video = await self.fetch_metadata(video_id)
        except FetchError as e:
            logger.warning(f"Metadata download for {video_id} failed: {e}")
            return _fail(FETCH_FAILED)
        return {"success": True, "data": video.to_wire()}
