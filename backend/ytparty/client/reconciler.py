import logging
from typing import Callable, Optional

from ytparty.client.player import Player
from ytparty.models.state import PlayerState, State

logger = logging.getLogger(__name__)

# Only these transitions mean a freshly loaded video accepts seek/play/pause
DRAINING_STATES = (PlayerState.PLAYING, PlayerState.PAUSED)


class PlaybackReconciler:
    """
    Serialises mutations of the player. Loading a video is asynchronous, so
    the seek and play/pause that follow a load wait until the player reports
    PLAYING or PAUSED.

    At most one reconciliation is pending at a time. A newer reference
    replaces the pending one, so a stale seek can never fire on a later,
    unrelated transition.
    """

    def __init__(self, player: Player):
        self.player = player
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> int:
        return 0 if self._pending is None else 1

    def reconcile(self, reference: Optional[State]) -> None:
        # `reference` is a frozen snapshot; player callbacks firing while we
        # drive the player cannot change what we are converging on.
        if reference is None:
            return

        def apply():
            self.player.seek_to(reference.current_time)
            if reference.player_state == PlayerState.PLAYING:
                self.player.play()
            else:
                self.player.pause()

        current_video_id = (self.player.get_video_data() or {}).get("video_id")

        if reference.video_id is not None and reference.video_id != current_video_id:
            if self._pending is not None:
                logger.debug(f"Pending reconciliation superseded by load of {reference.video_id}")
            self._pending = apply
            logger.debug(f"Loading {reference.video_id}, seek to {reference.current_time} pending")
            self.player.load(reference.video_id)
            return

        if self._pending is not None:
            # A load is still in flight; the newest reference wins once it lands
            logger.debug(f"Pending reconciliation replaced, seek to {reference.current_time}")
            self._pending = apply
            return

        apply()

    def on_player_state_change(self, state: Optional[PlayerState]) -> None:
        if state not in DRAINING_STATES or self._pending is None:
            return
        action, self._pending = self._pending, None
        action()
