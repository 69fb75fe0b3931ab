import logging
import time
import uuid
from typing import Callable, Dict, Optional

from ytparty.models.room import Room

logger = logging.getLogger(__name__)

ROOM_TTL = 3600 * 24 # 24 hours


class RoomRegistry:
    """
    Process-wide in-memory room store. Created at startup and passed to the
    relay and HTTP routes; nothing survives a restart.
    """

    def __init__(self, clock: Callable[[], float] = time.time, ttl: float = ROOM_TTL):
        self._clock = clock
        self._ttl = ttl
        self._rooms: Dict[str, Room] = {}
        self._last_cleaning = clock()

    def __len__(self) -> int:
        return len(self._rooms)

    def create_room(self) -> str:
        room_id = str(uuid.uuid4())
        self._rooms[room_id] = Room(id=room_id, created_at=self._clock())
        logger.info(f"Created room {room_id}")
        return room_id

    def get_room(self, room_id: Optional[str]) -> Optional[Room]:
        if not room_id:
            return None
        return self._rooms.get(room_id)

    def clean_if_necessary(self) -> bool:
        now = self._clock()
        if now - self._last_cleaning < self._ttl:
            return False

        self._last_cleaning = now
        self._clean(now)
        return True

    def _clean(self, now: float) -> None:
        expired = [rid for rid, room in self._rooms.items() if now - room.created_at >= self._ttl]
        for rid in expired:
            del self._rooms[rid]
        logger.info(f"Removed {len(expired)} expired rooms, {len(self._rooms)} remaining")
