from ytparty.client.connection import NotConnectedError, RequestError, SocketConnection
from ytparty.client.master import MasterSession
from ytparty.client.member import MemberSession, format_duration, try_get_youtube_video_id
from ytparty.client.player import Player, define_state
from ytparty.client.readiness import ReadinessTracker, UnknownComponentError
from ytparty.client.reconciler import PlaybackReconciler
from ytparty.client.state import StateManager

__all__ = [
    "MasterSession",
    "MemberSession",
    "NotConnectedError",
    "PlaybackReconciler",
    "Player",
    "ReadinessTracker",
    "RequestError",
    "SocketConnection",
    "StateManager",
    "UnknownComponentError",
    "define_state",
    "format_duration",
    "try_get_youtube_video_id",
]
