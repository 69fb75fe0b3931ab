from typing import Optional, Protocol

from ytparty.models.state import PlayerState, State, StateVideoMetadata, player_state_from_code


class Player(Protocol):
    """
    Capability surface of the embedded video player. Implementations report
    `ready` and numeric state changes back to the owning session.
    """

    def load(self, video_id: str) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek_to(self, seconds: float) -> None: ...

    def get_state(self) -> int: ...

    def get_current_time(self) -> float: ...

    def get_duration(self) -> float: ...

    def get_video_data(self) -> dict: ...


def define_state(player: Optional[Player]) -> Optional[State]:
    """Snapshot the player, or None when there is no player yet."""
    if player is None:
        return None

    video_data = player.get_video_data() or {}
    duration = int(player.get_duration() or 0)
    current_time = int(player.get_current_time() or 0)
    if duration > 0:
        current_time = min(current_time, duration)

    return State(
        video_id=video_data.get("video_id") or None,
        video_metadata=StateVideoMetadata(title=video_data.get("title"), author=video_data.get("author")),
        player_state=player_state_from_code(player.get_state()) or PlayerState.UNSTARTED,
        current_time=current_time,
        duration=duration,
    )
