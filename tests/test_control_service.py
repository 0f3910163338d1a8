import pytest
from aiohttp.test_utils import TestClient, TestServer

import control


def test_refuses_to_start_without_password(monkeypatch):
    monkeypatch.delenv("VLC_PASSWORD", raising=False)
    with pytest.raises(SystemExit) as exc:
        control.main()
    assert exc.value.code == 1


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "3100")
    assert control.control_port() == 3100
    monkeypatch.delenv("PORT")
    assert control.control_port() == 3000


async def test_app_starts_and_serves_control(tmp_path, monkeypatch):
    monkeypatch.setattr(control, "PATHS_FILE", str(tmp_path / "paths.txt"))
    client = TestClient(TestServer(control.build_app("secret")))
    await client.start_server()
    try:
        resp = await client.post("/control", json={
            "command": "savePaths", "masterFile": "/a.mp4", "slaveFile": "/b.mp4",
        })
        assert await resp.json() == {"message": "Paths saved successfully."}
        assert (tmp_path / "paths.txt").read_text().startswith("MASTER_VIDEO_PATH=/a.mp4")
    finally:
        await client.close()
