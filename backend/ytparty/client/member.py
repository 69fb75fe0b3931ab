import logging
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from ytparty.client.connection import RequestError, SocketConnection
from ytparty.models.state import PlayerState, State, VideoMetadata
from ytparty.services.media import is_valid_video_id

logger = logging.getLogger(__name__)

SEEK_STEP = 10


def try_get_youtube_video_id(url: str) -> Optional[str]:
    """Video id from a youtube.com/watch?v= or youtu.be/ link, else None."""
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return None

    if parsed.scheme not in ("http", "https"):
        return None

    if parsed.hostname == "www.youtube.com":
        if parsed.path != "/watch":
            return None
        video_id = parse_qs(parsed.query).get("v", [None])[0]
    elif parsed.hostname == "youtu.be":
        video_id = parsed.path[1:]
    else:
        return None

    return video_id if is_valid_video_id(video_id) else None


def format_duration(seconds: int) -> str:
    minutes, remaining = divmod(int(seconds), 60)
    return f"{minutes}:{remaining:02d}"


class MemberSession:
    """
    A room participant without a player. Mirrors the reported state and the
    queue and turns user intents into commands and queue requests.
    """

    def __init__(self, connection: SocketConnection):
        self.connection = connection
        self.state: Optional[State] = None
        self.queue: Optional[List[VideoMetadata]] = None

        connection.connected_signal.connect(self._on_connected)
        connection.state_changed.connect(self._on_state_changed)
        connection.queue_modified.connect(self._on_queue_modified)

    async def start(self) -> None:
        await self.connection.connect()

    async def stop(self) -> None:
        await self.connection.disconnect()

    async def _on_connected(self) -> None:
        await self.sync()

    async def sync(self) -> None:
        try:
            self.state = await self.connection.state.sync()
            logger.info(f"State synced from server: {self.state}")
        except RequestError as e:
            logger.warning(f"State sync failed: {e}")

        try:
            self.queue = await self.connection.queue.sync()
            logger.info(f"Queue synced from server: {len(self.queue)} videos")
        except RequestError as e:
            logger.warning(f"Queue sync failed: {e}")

    def _on_state_changed(self, state: Optional[State]) -> None:
        self.state = state

    def _on_queue_modified(self, queue: List[VideoMetadata]) -> None:
        logger.info(f"Queue modified: {[v.id for v in queue]}")
        self.queue = queue

    # Queue

    async def preview(self, url: str) -> Optional[VideoMetadata]:
        video_id = try_get_youtube_video_id(url)
        if video_id is None:
            return None
        return await self.connection.api.download_video_metadata(video_id)

    async def enqueue(self, url: str) -> bool:
        video_id = try_get_youtube_video_id(url)
        if video_id is None:
            return False
        await self.connection.queue.add_video(video_id)
        logger.info(f"Video added to queue: {video_id}")
        return True

    async def remove(self, index: int) -> None:
        await self.connection.queue.remove_video(index)

    async def move(self, index: int, new_position: int) -> None:
        await self.connection.queue.move_video(index, new_position)

    # Playback

    async def toggle_playback(self) -> Optional[str]:
        player_state = self.state.player_state if self.state else PlayerState.UNSTARTED

        if player_state == PlayerState.ENDED:
            await self.connection.send_command("seek", 0)
            return "seek"
        if player_state == PlayerState.PLAYING:
            await self.connection.send_command("pause")
            return "pause"
        if player_state in (PlayerState.PAUSED, PlayerState.CUED):
            await self.connection.send_command("play")
            return "play"
        return None

    async def rewind(self, seconds: int = SEEK_STEP) -> None:
        await self._seek_by(-seconds)

    async def fast_forward(self, seconds: int = SEEK_STEP) -> None:
        await self._seek_by(seconds)

    async def _seek_by(self, delta: int) -> None:
        if self.state is None or self.state.player_state == PlayerState.UNSTARTED:
            return
        target = max(0, self.state.current_time + delta)
        if self.state.duration > 0:
            target = min(target, self.state.duration)
        await self.connection.send_command("seek", target)
