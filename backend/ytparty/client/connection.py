import logging
from typing import Any, List, Optional
from urllib.parse import urlencode

import socketio
from pydantic import ValidationError

from ytparty.client.signals import Signal
from ytparty.models.state import State, VideoMetadata

logger = logging.getLogger(__name__)


class RequestError(Exception):
    """A request-style event was answered with success: false."""


class NotConnectedError(RequestError):
    pass


def _pack(args: tuple):
    # python-socketio sends a tuple as separate arguments
    if not args:
        return None
    if len(args) == 1:
        return args[0]
    return args


class StateChannel:
    def __init__(self, connection: "SocketConnection"):
        self._connection = connection

    async def sync(self) -> Optional[State]:
        response = await self._connection.request("state:sync")
        state = response.get("state")
        return State.model_validate(state) if state is not None else None

    async def report(self, state: Optional[State]) -> None:
        if state is None:
            logger.debug("Not reporting empty state")
            return
        await self._connection.fire("state:report", state.to_wire())


class QueueChannel:
    def __init__(self, connection: "SocketConnection"):
        self._connection = connection

    async def sync(self) -> List[VideoMetadata]:
        response = await self._connection.request("queue:sync")
        return [VideoMetadata.model_validate(v) for v in response.get("data") or []]

    async def add_video(self, video_id: str) -> None:
        await self._connection.request("queue:addVideo", video_id)

    async def remove_video(self, index: int) -> None:
        await self._connection.request("queue:removeVideo", index)

    async def move_video(self, index: int, new_position: int) -> None:
        await self._connection.request("queue:moveVideo", index, new_position)

    async def next(self) -> Optional[VideoMetadata]:
        response = await self._connection.request("queue:next")
        data = response.get("data")
        return VideoMetadata.model_validate(data) if data else None


class ApiChannel:
    def __init__(self, connection: "SocketConnection"):
        self._connection = connection

    async def download_video_metadata(self, video_id: str) -> VideoMetadata:
        response = await self._connection.request("api:downloadVideoMetadata", video_id)
        return VideoMetadata.model_validate(response["data"])


class SocketConnection:
    """
    Client side of the room protocol. Requests are Socket.IO calls answered
    through acknowledgements; incoming broadcasts are re-emitted as signals.
    """

    def __init__(self, url: str, room_id: str, client: Optional[socketio.AsyncClient] = None,
                 request_timeout: float = 60):
        self.url = url
        self.room_id = room_id
        self.request_timeout = request_timeout
        self.sio = client if client is not None else socketio.AsyncClient()

        self.connected_signal = Signal("connected")
        self.disconnected_signal = Signal("disconnected")
        self.state_changed = Signal("stateChanged")
        self.command_received = Signal("commandReceived")
        self.queue_modified = Signal("queueModified")

        self.state = StateChannel(self)
        self.queue = QueueChannel(self)
        self.api = ApiChannel(self)

        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on("state:report", self._on_state_report)
        self.sio.on("command", self._on_command)
        self.sio.on("queue:modified", self._on_queue_modified)

    @property
    def connected(self) -> bool:
        return self.sio.connected

    @property
    def handshake_url(self) -> str:
        return f"{self.url}?{urlencode({'roomId': self.room_id})}"

    async def connect(self) -> None:
        await self.sio.connect(self.handshake_url)

    async def disconnect(self) -> None:
        await self.sio.disconnect()

    async def request(self, event: str, *args) -> dict:
        if not self.connected:
            raise NotConnectedError(f"Tried to {event} but socket is not connected!")

        try:
            response = await self.sio.call(event, _pack(args), timeout=self.request_timeout)
        except socketio.exceptions.TimeoutError:
            raise RequestError(f"{event} timed out after {self.request_timeout}s")
        if not isinstance(response, dict) or not response.get("success"):
            error = response.get("error") if isinstance(response, dict) else None
            raise RequestError(error or f"{event} failed")
        return response

    async def fire(self, event: str, *args) -> None:
        if not self.connected:
            logger.error(f"Tried to {event} but socket is not connected!")
            return
        await self.sio.emit(event, _pack(args))

    async def send_command(self, name: str, arg: Any = None) -> None:
        await self.fire("command", name, arg)

    # Incoming events

    def _on_connect(self):
        logger.info(f"Connected to room {self.room_id}")
        self.connected_signal.emit()

    def _on_disconnect(self, *args):
        logger.info(f"Disconnected from room {self.room_id}")
        self.disconnected_signal.emit()

    def _on_state_report(self, data):
        try:
            state = State.model_validate(data) if data is not None else None
        except ValidationError as e:
            logger.warning(f"Ignoring malformed state report: {e}")
            return
        self.state_changed.emit(state)

    def _on_command(self, name, arg=None):
        logger.debug(f"Received command {name} with arg {arg!r}")
        self.command_received.emit(name, arg)

    def _on_queue_modified(self, data):
        try:
            queue = [VideoMetadata.model_validate(v) for v in data or []]
        except ValidationError as e:
            logger.warning(f"Ignoring malformed queue update: {e}")
            return
        self.queue_modified.emit(queue)
