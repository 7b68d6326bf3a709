"""Tests for the LCU client (no real client needed)."""
from unittest.mock import MagicMock

import pytest
import requests

import lcu_client
from lcu_client import LCUClient, LCUConn, LCUError, _DirectLCUBackend, parse_process_args, read_lockfile


def _resp(status=200, text="", json_value=None):
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.json.return_value = json_value
    return r


@pytest.fixture
def backend():
    b = _DirectLCUBackend(LCUConn(port=1234, password="pw"))
    b._session = MagicMock()
    return b


def test_read_lockfile(tmp_path):
    p = tmp_path / "lockfile"
    p.write_text("LeagueClient:1111:54321:s3cr3t:https", encoding="utf-8")
    conn = read_lockfile(str(p))
    assert conn.port == 54321
    assert conn.password == "s3cr3t"
    assert conn.base_url == "https://127.0.0.1:54321"
    assert conn.auth == ("riot", "s3cr3t")


def test_read_lockfile_rejects_garbage(tmp_path):
    p = tmp_path / "lockfile"
    p.write_text("nope", encoding="utf-8")
    with pytest.raises(ValueError):
        read_lockfile(str(p))


def test_parse_process_args():
    line = '"LeagueClientUx.exe" "--remoting-auth-token=abc_DEF-1" "--app-port=60000" "--app-pid=42"'
    conn = parse_process_args(line)
    assert conn.port == 60000 and conn.password == "abc_DEF-1"
    assert parse_process_args("nothing here") is None


def test_hover_patches_action(backend):
    backend._session.request.return_value = _resp(204)
    assert backend.patch_action(9, 266) is True
    method, url = backend._session.request.call_args.args
    assert method == "PATCH"
    assert url == "https://127.0.0.1:1234/lol-champ-select/v1/session/actions/9"
    assert backend._session.request.call_args.kwargs["json"] == {"championId": 266}


def test_lock_posts_complete(backend):
    backend._session.request.return_value = _resp(500, "oops")
    assert backend.complete_action(9) is False
    method, url = backend._session.request.call_args.args
    assert method == "POST"
    assert url.endswith("/lol-champ-select/v1/session/actions/9/complete")


def test_lock_transport_error_is_false(backend):
    backend._session.request.side_effect = requests.ConnectionError("refused")
    assert backend.complete_action(9) is False


def test_phase_read_error_raises(backend):
    backend._session.get.side_effect = requests.ConnectionError("refused")
    with pytest.raises(LCUError):
        backend.get_gameflow_phase()


def test_phase_and_mode(backend):
    backend._session.get.side_effect = [
        _resp(200, '"ChampSelect"', "ChampSelect"),
        _resp(200, "{...}", {"gameData": {"queue": {"gameMode": "TFT"}}}),
    ]
    assert backend.get_gameflow_phase() == "ChampSelect"
    assert backend.get_game_mode() == "TFT"


def test_session_404_is_none(backend):
    backend._session.get.return_value = _resp(404, '{"httpStatus":404}')
    client = LCUClient(backend)
    assert client.get_session() is None


def test_client_rediscovers_after_connection_loss(backend, monkeypatch):
    client = LCUClient(backend)
    backend._session.get.side_effect = requests.ConnectionError("gone")
    with pytest.raises(LCUError):
        client.get_phase()

    monkeypatch.setattr(lcu_client, "discover_conn", lambda lockfile="": None)
    assert client.is_connected() is False

    monkeypatch.setattr(lcu_client, "discover_conn", lambda lockfile="": LCUConn(port=4321, password="x"))
    assert client.is_connected() is True
    assert client._b.conn.port == 4321


def test_from_env_or_guess_without_client(monkeypatch):
    monkeypatch.setattr(lcu_client, "discover_conn", lambda lockfile="": None)
    with pytest.raises(FileNotFoundError):
        LCUClient.from_env_or_guess()
