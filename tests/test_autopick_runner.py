"""Tests for the runner and CLI wiring."""
import threading

from conftest import FakeClient, make_action, make_session
import autopick
from autopick import AutoPickRunner, build_engine, build_parser
from env_loader import AutoPickConfig
from slot_store import SlotStore
from status_board import PICKED


class CountingEngine:
    def __init__(self, n):
        self.calls = 0
        self.done = threading.Event()
        self.n = n

    def tick(self):
        self.calls += 1
        if self.calls >= self.n:
            self.done.set()
        return True


def test_runner_ticks_on_period():
    engine = CountingEngine(3)
    runner = AutoPickRunner(engine, period=0.05)
    runner.start()
    assert engine.done.wait(2)
    runner.stop()
    assert engine.calls >= 3


def test_build_engine_uses_config(catalog, tmp_path):
    cfg = AutoPickConfig(hover_settle_sec=0.1, lock_retry_sec=0.2, lock_attempts=3, planning_hover=False,
                         slots_file=str(tmp_path / "slots.json"))
    client = FakeClient(session=make_session(make_action(10, "pick", in_progress=True)))
    engine = build_engine(cfg, client=client, catalog=catalog)
    assert engine.policy.lock_attempts == 3
    assert engine.planning_hover is False
    assert engine.store.path == str(tmp_path / "slots.json")

    engine._sleep = lambda s: None
    engine.submit("upsert", "default", {"pick_champion": "Aatrox"})
    engine.tick()
    assert engine.board.get("default").kind == PICKED
    # intent persisted by the engine after applying the command
    assert SlotStore(engine.store.path).load().get("default").pick_champion == "Aatrox"


def test_parser():
    args = build_parser().parse_args(["run", "--pick", "Aatrox", "--no-lock", "--no-api"])
    assert args.pick == "Aatrox" and args.no_lock and args.no_api
    assert args.slot == "default"


def test_slots_command_lists_saved(tmp_path, monkeypatch, capsys):
    path = tmp_path / "slots.json"
    store = SlotStore(str(path))
    store.upsert("main", pick_champion="Ahri")
    store.save()
    monkeypatch.setenv("AUTOPICK_SLOTS_FILE", str(path))
    monkeypatch.setattr(autopick, "load_project_env", lambda: [])
    monkeypatch.setattr(autopick.AutoPickConfig, "from_env", classmethod(lambda cls: cls(slots_file=str(path))))
    assert autopick.main(["slots"]) == 0
    assert "main: pick=Ahri" in capsys.readouterr().out
