import pytest
from aiohttp.test_utils import TestClient, TestServer

from conftest import status
from dualsync.controller import ControlContext, SyncController
from dualsync.endpoint import ControlEndpoint, create_app
from dualsync.path_store import MediaSelection, PathStore


@pytest.fixture
async def http(ctx):
    client = TestClient(TestServer(create_app(ControlEndpoint(SyncController(ctx)))))
    await client.start_server()
    yield client
    await client.close()


async def post(http, **data):
    resp = await http.post("/control", json=data)
    assert resp.status == 200
    return await resp.json()


async def test_success_reply_has_only_message(http, players):
    reply = await post(http, command="stop")
    assert reply == {"message": "Both players stopped."}


async def test_error_reply_has_only_error(http, players):
    reply = await post(http, command="seek", seekValue="soon")
    assert reply == {"error": "Invalid or missing seek value."}
    assert players.events == []


async def test_unknown_command(http):
    assert await post(http, command="rewind") == {"error": "Invalid command."}


async def test_missing_paths_rejected_before_controller(players, sleep, tmp_path, ctx):
    empty = ControlContext(players, ctx.master, ctx.slave,
                           PathStore(str(tmp_path / "none.txt")), sleep=sleep)
    client = TestClient(TestServer(create_app(ControlEndpoint(SyncController(empty)))))
    await client.start_server()
    try:
        reply = await post(client, command="play")
    finally:
        await client.close()

    assert reply == {"error": "No file paths found. Please save file paths first."}
    assert players.events == []


async def test_request_paths_override_stored_ones(http, players):
    players.script("master", status("stopped"), status("playing"))
    players.script("slave", status("stopped"), status("playing"))

    reply = await post(http, command="play", masterFile="/x.mp4", slaveFile="/y.mp4")

    assert "message" in reply
    assert players.sent(name="enqueue") == [
        ("master", "enqueue", "/x.mp4"),
        ("slave", "enqueue", "/y.mp4"),
    ]


async def test_save_paths_from_form_fields(http, store):
    resp = await http.post("/control", data={
        "command": "savePaths", "masterFile": "/a.mp4", "slaveFile": "/b.mp4",
    })
    assert await resp.json() == {"message": "Paths saved successfully."}
    assert store.load() == MediaSelection("/a.mp4", "/b.mp4")


async def test_save_paths_with_single_file_uses_it_for_both(http, store):
    reply = await post(http, command="savePaths", masterFile="/only.mp4")
    assert reply == {"message": "Paths saved successfully."}
    assert store.load() == MediaSelection("/only.mp4", "/only.mp4")


async def test_save_paths_missing_master_leaves_store_alone(http, store):
    before = store.load()
    reply = await post(http, command="savePaths", masterFile="", slaveFile="b.mp4")
    assert reply == {"error": "Missing file paths."}
    assert store.load() == before


async def test_set_speed_from_json_number(http, players):
    reply = await post(http, command="setSpeed", speed=1.25)
    assert reply == {"message": "Speed set to 1.25x on both players."}
    assert players.sent() == [("master", "rate", 1.25), ("slave", "rate", 1.25)]


async def test_skip_backward_command(http, players):
    players.script("master", status(elapsed=40.0))
    players.script("slave", status(elapsed=41.0))

    reply = await post(http, command="skip_backward")

    assert reply == {"message": "Skipped backward 10 seconds."}
    assert players.sent() == [("master", "seek", 30.0), ("slave", "seek", 31.0)]


async def test_sync_correction_uses_single_reply_shape(http, players):
    players.script("master", status("playing", 50.0))
    players.script("slave", status("playing", 44.0))

    reply = await post(http, command="sync")

    assert reply == {"message": "Sync complete. Both players are now playing at ~51.0 sec."}


async def test_sync_failure_is_reported_as_error(http, players):
    players.script("master", None)
    players.script("slave", None)
    reply = await post(http, command="sync")
    assert reply == {"error": "Both VLC systems are unreachable."}


async def test_unexpected_failure_becomes_error_reply(http, players):
    async def broken(participant, command):
        raise RuntimeError("boom")
    players.send = broken

    reply = await post(http, command="stop")

    assert reply == {"error": "Internal error: boom"}


async def test_invalid_json_body(http):
    resp = await http.post("/control", data="{not json",
                           headers={"Content-Type": "application/json"})
    assert resp.status == 400
    assert await resp.json() == {"error": "invalid request body"}


async def test_status_reports_both_participants(http, players):
    players.script("master", status("paused", 12.5, fullscreen=False))
    players.script("slave", None)

    resp = await http.get("/control/status")
    body = await resp.json()

    assert body["master"] == {
        "url": "http://master:8080", "reachable": True,
        "state": "paused", "elapsed": 12.5, "fullscreen": False,
    }
    assert body["slave"] == {"url": "http://slave:8080", "reachable": False}


async def test_cors_headers(http):
    resp = await http.options("/control")
    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


async def test_undecodable_paths_file_is_a_path_store_error(http, store, players):
    with open(store.path, "wb") as f:
        f.write(b"MASTER_VIDEO_PATH=/m/\xe9t\xe9.mp4\nSLAVE_VIDEO_PATH=/m/b.mp4")

    reply = await post(http, command="stop")

    assert list(reply) == ["error"]
    assert reply["error"].startswith("Failed to read paths:")
    assert players.events == []
