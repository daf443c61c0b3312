import pytest


def test_api_save_and_load_snapshot_smoke(tmp_path, monkeypatch):
    pytest.importorskip("fastapi")
    pytest.importorskip("starlette")

    monkeypatch.setenv("HEXWAR_DB_PATH", str(tmp_path / "games.db"))

    from fastapi.testclient import TestClient
    from app import app

    client = TestClient(app)

    r = client.post("/games")
    assert r.status_code == 200
    game_id = r.json()["game_id"]

    def command(text):
        r = client.post(f"/games/{game_id}/command", json={"viewer": "Francia", "command": text})
        assert r.status_code == 200
        return r.json()

    # Save a snapshot
    out = command("save s1")
    assert "Saved snapshot" in "\n".join(out["events"])

    # Make a state change
    out = command("end")
    assert out["state"]["turn_number"] == 2

    out = command("list-saves")
    assert out["events"] == ["Snapshots: s1"]

    out = command("load s1")
    assert "Loaded snapshot" in "\n".join(out["events"])
    assert out["state"]["turn_number"] == 1
    assert out["state"]["tick_number"] == 0

    out = command("load nothing")
    assert out["events"][0].startswith("ERROR")

    out = command("delete-save s1")
    assert out["events"] == ["Deleted snapshot 's1'"]
    out = command("list-saves")
    assert out["events"] == ["(no snapshots)"]
