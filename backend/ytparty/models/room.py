import asyncio
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ytparty.utils.queue import VideoQueue
from ytparty.utils.sequencer import TurnSequencer


class Room(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    created_at: float
    # Last reported state, stored as received from the reporting socket
    state: Optional[Dict[str, Any]] = None
    queue: VideoQueue = Field(default_factory=VideoQueue)

    # Serialises state mutation plus broadcast within this room
    _lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)
    # Applies queue mutations in arrival order, even when a fetch precedes them
    _queue_turns: TurnSequencer = PrivateAttr(default_factory=TurnSequencer)

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    @property
    def queue_turns(self) -> TurnSequencer:
        return self._queue_turns

    def queue_snapshot(self) -> List[dict]:
        return [video.to_wire() for video in self.queue.to_list()]
