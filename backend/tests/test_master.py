import asyncio

import pytest
import pytest_asyncio
import socketio

from ytparty.client.connection import SocketConnection
from ytparty.client.master import MasterSession

from conftest import VIDEO, FakeClient, FakePlayer

SYNCED_STATE = {
    "videoId": "XXXXXXXXXXX",
    "videoMetadata": {"title": "T", "author": "A"},
    "playerState": "PLAYING",
    "currentTime": 42,
    "duration": 100,
}


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


def reported_states(client):
    return [call.args[1] for call in client.emit.await_args_list if call.args[0] == "state:report"]


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def player():
    return FakePlayer(video_id="YYYYYYYYYYY", state=-1)


@pytest_asyncio.fixture
async def master(client, player):
    connection = SocketConnection("http://localhost:3000", "room-1", client=client)
    session = MasterSession(connection, player, base_url="http://localhost:3000/", report_interval=60)
    yield session
    await session.stop()


async def bring_up(master, client, state):
    client.call.return_value = {"success": True, "state": state}
    client.handlers["connect"]()
    master.on_player_ready()
    await settle()


@pytest.mark.asyncio
async def test_state_sync_waits_for_socket_and_player(master, client):
    client.call.return_value = {"success": True, "state": None}

    master.on_player_ready()
    await settle()
    client.call.assert_not_awaited()

    client.handlers["connect"]()
    await settle()
    client.call.assert_awaited_once_with("state:sync", None, timeout=60)
    assert master.readiness.is_ready


@pytest.mark.asyncio
async def test_bring_up_reconciles_player_to_synced_state(master, client, player):
    await bring_up(master, client, SYNCED_STATE)

    assert master.readiness.components == {"socket": True, "player": True, "state": True}
    assert master.needs_invite is False
    assert player.calls == [("load", "XXXXXXXXXXX")]

    master.on_player_state_change(1)

    assert player.calls == [("load", "XXXXXXXXXXX"), ("seek_to", 42), ("play",)]


@pytest.mark.asyncio
async def test_empty_room_needs_invite(master, client, player):
    await bring_up(master, client, None)

    assert master.needs_invite is True
    assert master.member_url == "http://localhost:3000/room-1"
    assert player.calls == []


@pytest.mark.asyncio
async def test_player_changes_are_reported(master, client, player):
    await bring_up(master, client, None)
    client.emit.reset_mock()

    player.state_code = 2
    player.current_time = 13.9
    player.duration = 60
    master.on_player_state_change(2)
    await settle()

    states = reported_states(client)
    assert states[-1]["playerState"] == "PAUSED"
    assert states[-1]["currentTime"] == 13
    assert states[-1]["videoId"] == "YYYYYYYYYYY"


@pytest.mark.asyncio
async def test_commands_drive_the_player(master, player, caplog):
    master.handle_command("play")
    master.handle_command("pause")
    master.handle_command("seek", 30)
    master.handle_command("rewind")

    assert player.calls == [("play",), ("pause",), ("seek_to", 30)]
    assert 'Unknown command "rewind"' in caplog.text


@pytest.mark.asyncio
async def test_remote_state_is_adopted_without_echo(master, client, player):
    await bring_up(master, client, None)
    client.emit.reset_mock()
    player.calls.clear()

    client.handlers["state:report"]({**SYNCED_STATE, "videoId": "ZZZZZZZZZZZ", "playerState": "PAUSED"})
    await settle()

    assert master.state_manager.state.video_id == "ZZZZZZZZZZZ"
    assert player.calls == [("load", "ZZZZZZZZZZZ")]
    assert reported_states(client) == []


@pytest.mark.asyncio
async def test_ended_advances_queue(master, client, player):
    await bring_up(master, client, None)
    client.call.return_value = {"success": True, "data": VIDEO}

    player.state_code = 0
    master.on_player_state_change(0)
    await settle()

    client.call.assert_awaited_with("queue:next", None, timeout=60)
    assert player.calls[-1] == ("load", VIDEO["id"])


@pytest.mark.asyncio
async def test_ended_with_empty_queue_leaves_player_alone(master, client, player):
    await bring_up(master, client, None)
    client.call.return_value = {"success": True, "data": None}

    assert await master.play_next() is None
    assert player.calls == []


@pytest.mark.asyncio
async def test_periodic_report_only_while_playing(client):
    player = FakePlayer(video_id="XXXXXXXXXXX", state=2, duration=100)
    connection = SocketConnection("http://localhost:3000", "room-1", client=client)
    session = MasterSession(connection, player, report_interval=0.01)
    try:
        await bring_up(session, client, None)
        client.emit.reset_mock()

        await asyncio.sleep(0.05)
        assert reported_states(client) == []

        player.state_code = 1
        await asyncio.sleep(0.05)
        assert reported_states(client)
        assert reported_states(client)[-1]["playerState"] == "PLAYING"
    finally:
        await session.stop()


@pytest.mark.asyncio
async def test_timed_out_state_sync_is_retried_on_reconnect(master, client):
    client.call.side_effect = socketio.exceptions.TimeoutError()
    client.handlers["connect"]()
    master.on_player_ready()
    await settle()

    assert not master.readiness.is_ready
    assert master.readiness.is_component_ready("state") is False

    client.call.side_effect = None
    client.call.return_value = {"success": True, "state": None}
    client.handlers["connect"]()
    await settle()

    assert master.readiness.is_ready
    assert client.call.await_count == 2


@pytest.mark.asyncio
async def test_state_sync_crash_is_logged_and_retried(master, client, caplog):
    client.call.side_effect = RuntimeError("transport gone")
    client.handlers["connect"]()
    master.on_player_ready()
    await settle()

    assert not master.readiness.is_ready
    assert "transport gone" in caplog.text

    client.call.side_effect = None
    client.call.return_value = {"success": True, "state": None}
    client.handlers["connect"]()
    await settle()

    assert master.readiness.is_ready
