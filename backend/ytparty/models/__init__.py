from ytparty.models.room import Room
from ytparty.models.state import (
    PLAYER_STATE_CODES,
    PlayerState,
    State,
    StateVideoMetadata,
    VideoMetadata,
    player_state_from_code,
)

__all__ = [
    "Room",
    "PLAYER_STATE_CODES",
    "PlayerState",
    "State",
    "StateVideoMetadata",
    "VideoMetadata",
    "player_state_from_code",
]
