from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

VIDEO_ID_PATTERN = r"^[A-Za-z0-9_-]{11}$"


class PlayerState(str, Enum):
    UNSTARTED = "UNSTARTED"
    ENDED = "ENDED"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    BUFFERING = "BUFFERING"
    CUED = "CUED"


# Numeric codes emitted by the embedded player. Code 4 is never emitted.
PLAYER_STATE_CODES = {
    -1: PlayerState.UNSTARTED,
    0: PlayerState.ENDED,
    1: PlayerState.PLAYING,
    2: PlayerState.PAUSED,
    3: PlayerState.BUFFERING,
    5: PlayerState.CUED,
}


def player_state_from_code(code: int) -> Optional[PlayerState]:
    return PLAYER_STATE_CODES.get(code)


class _WireModel(BaseModel):
    # Immutable snapshots; camelCase on the wire, snake_case in Python
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class VideoMetadata(_WireModel):
    id: str = Field(pattern=VIDEO_ID_PATTERN)
    title: str
    author: str
    thumbnail: str


class StateVideoMetadata(_WireModel):
    title: Optional[str] = None
    author: Optional[str] = None


class State(_WireModel):
    video_id: Optional[str] = None
    video_metadata: Optional[StateVideoMetadata] = None
    player_state: PlayerState = PlayerState.UNSTARTED
    current_time: int = 0
    duration: int = 0

    @property
    def is_playing(self) -> bool:
        return self.player_state == PlayerState.PLAYING
