"""Tests for the local control/status API."""
import pytest
from fastapi.testclient import TestClient

from api_server import app, bind_engine
from status_board import ARMED


@pytest.fixture
def api(engine):
    bind_engine(engine)
    yield TestClient(app)
    app.state.engine = None


def test_health(api, engine):
    engine.connected = True
    r = api.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["connected"] is True


def test_put_slot_is_applied_by_engine(api, engine, client, store):
    r = api.put("/slots/main", json={"pick_champion": "Aatrox", "ban_champion": "Yasuo"})
    assert r.status_code == 200
    assert r.json()["queued"] == "upsert"
    # not applied until the engine ticks
    assert "main" not in store

    client.phase = "Lobby"
    engine.tick()
    assert store.get("main").pick_champion == "Aatrox"

    slots = api.get("/slots").json()["slots"]
    assert slots[0]["slot_id"] == "main"
    assert slots[0]["ban_champion"] == "Yasuo"
    assert slots[0]["status"]["kind"] == ARMED


def test_put_slot_requires_a_target(api):
    r = api.put("/slots/main", json={"auto_lock": False})
    assert r.status_code == 400


def test_toggle_and_delete(api, engine, client, store):
    store.upsert("main", pick_champion="Aatrox")
    client.phase = "Lobby"

    assert api.post("/slots/main/toggle").status_code == 200
    engine.tick()
    assert store.get("main").enabled is False

    assert api.delete("/slots/main").status_code == 200
    engine.tick()
    assert "main" not in store


def test_toggle_right_after_put_applies_in_order(api, engine, client, store):
    assert api.put("/slots/main", json={"pick_champion": "Aatrox"}).status_code == 200
    assert api.post("/slots/main/toggle").status_code == 200

    client.phase = "Lobby"
    engine.tick()
    assert store.get("main").enabled is False


def test_delete_right_after_put_leaves_no_slot(api, engine, client, store):
    assert api.put("/slots/main", json={"pick_champion": "Aatrox"}).status_code == 200
    assert api.delete("/slots/main").status_code == 200

    client.phase = "Lobby"
    engine.tick()
    assert "main" not in store
    assert api.get("/slots").json()["slots"] == []


def test_unknown_slot_commands_are_ignored(api, engine, client, store):
    store.upsert("main", pick_champion="Aatrox")
    assert api.post("/slots/nope/toggle").status_code == 200
    assert api.delete("/slots/nope").status_code == 200

    client.phase = "Lobby"
    engine.tick()
    assert [s.slot_id for s in store] == ["main"]
    assert store.get("main").enabled is True


def test_no_engine_is_503():
    app.state.engine = None
    c = TestClient(app)
    assert c.get("/slots").status_code == 503
    assert c.get("/health").json()["ok"] is False
