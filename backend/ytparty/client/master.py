import asyncio
import logging
from typing import Optional

from ytparty.client.connection import RequestError, SocketConnection
from ytparty.client.player import Player, define_state
from ytparty.client.readiness import ReadinessTracker
from ytparty.client.reconciler import PlaybackReconciler
from ytparty.client.signals import spawn
from ytparty.client.state import StateManager
from ytparty.models.state import PlayerState, State, player_state_from_code

logger = logging.getLogger(__name__)

REPORT_INTERVAL = 1.0


class MasterSession:
    """
    The client that owns the player. Brings up socket, player and the
    initial state sync behind one readiness point, then keeps the room
    informed of every player change.
    """

    def __init__(self, connection: SocketConnection, player: Player, base_url: str = "",
                 report_interval: float = REPORT_INTERVAL):
        self.connection = connection
        self.player = player
        self.base_url = base_url.rstrip("/")
        self.report_interval = report_interval

        self.readiness = ReadinessTracker()
        self.state_manager = StateManager(lambda: define_state(self.player))
        self.reconciler = PlaybackReconciler(player)

        self.needs_invite = False
        self._syncing = False
        self._report_task: Optional[asyncio.Future] = None

        for component in ("socket", "player", "state"):
            self.readiness.add_component(component)

        self.readiness.ready.connect(self._on_ready, once=True)
        self.state_manager.state_changed.connect(self._report_state)
        connection.connected_signal.connect(self._on_connected)
        connection.command_received.connect(self.handle_command)
        connection.state_changed.connect(self._on_remote_state)

    @property
    def member_url(self) -> str:
        return f"{self.base_url}/{self.connection.room_id}"

    async def start(self) -> None:
        await self.connection.connect()

    async def stop(self) -> None:
        if self._report_task is not None:
            self._report_task.cancel()
            try:
                await self._report_task
            except asyncio.CancelledError:
                pass
            self._report_task = None
        await self.connection.disconnect()

    # Player events

    def on_player_ready(self) -> None:
        logger.info("Player ready")
        self.readiness.component_ready("player")
        self._maybe_sync_state()

    def on_player_state_change(self, code: int) -> None:
        state_name = player_state_from_code(code)
        logger.info(f"Player state changed to {state_name.value if state_name else code}")

        self.state_manager.update_state()
        self.reconciler.on_player_state_change(state_name)

        if state_name == PlayerState.ENDED and self.readiness.is_ready:
            spawn(self.play_next())

    # Startup

    def _on_connected(self) -> None:
        self.readiness.component_ready("socket")
        self._maybe_sync_state()

    def _maybe_sync_state(self) -> None:
        if self._syncing or self.readiness.is_component_ready("state"):
            return
        if not (self.readiness.is_component_ready("socket") and self.readiness.is_component_ready("player")):
            return
        self._syncing = True
        spawn(self.sync_state())

    async def sync_state(self) -> None:
        # Cleared however the request ends, so the next connect retries
        try:
            received = await self.connection.state.sync()
        except RequestError as e:
            logger.error(f"State sync failed: {e}")
            return
        finally:
            self._syncing = False

        logger.info(f"State synced from server: {received}")
        self.needs_invite = received is None or received.player_state == PlayerState.UNSTARTED
        if received is not None:
            self.state_manager.state = received

        self.readiness.component_ready("state")

    def _on_ready(self) -> None:
        self.reconciler.reconcile(self.state_manager.state)
        self._report_task = spawn(self._report_periodically())

    async def _report_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.report_interval)
            if player_state_from_code(self.player.get_state()) != PlayerState.PLAYING:
                continue
            self.state_manager.update_state()

    # Room events

    async def _report_state(self, state: Optional[State]) -> None:
        if not self.connection.connected:
            return
        await self.connection.state.report(state)

    def _on_remote_state(self, state: Optional[State]) -> None:
        if not self.readiness.is_ready:
            return
        self.state_manager.replace(state)
        self.reconciler.reconcile(state)

    def handle_command(self, name: str, arg=None) -> None:
        logger.info(f"Received command {name} with arg {arg!r}")
        if name == "play":
            self.player.play()
        elif name == "pause":
            self.player.pause()
        elif name == "seek":
            self.player.seek_to(arg)
        else:
            logger.warning(f'Unknown command "{name}" received!')

    async def play_next(self) -> Optional[str]:
        try:
            video = await self.connection.queue.next()
        except RequestError as e:
            logger.error(f"Could not advance queue: {e}")
            return None
        if video is None:
            return None

        logger.info(f"Playing next queued video '{video.title}' ({video.id})")
        self.player.load(video.id)
        return video.id
