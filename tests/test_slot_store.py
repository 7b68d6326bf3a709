"""Tests for the automation slot store."""
import json

import pytest

from slot_store import REASON_NONE, REASON_PICKED, SlotStore


def test_upsert_creates_then_updates_intent_only(store):
    slot = store.upsert("k", pick_champion="Aatrox")
    assert slot.auto_lock is True and slot.enabled is True
    slot.has_picked = True
    slot.terminal_reason = REASON_PICKED

    same = store.upsert("k", ban_champion="  Yasuo ", auto_lock=False)
    assert same is slot
    assert slot.pick_champion == "Aatrox"
    assert slot.ban_champion == "Yasuo"
    assert slot.auto_lock is False
    # progress untouched
    assert slot.has_picked is True


def test_blank_specs_become_none(store):
    slot = store.upsert("k", pick_champion="  ", ban_champion="")
    assert slot.pick_champion is None and slot.ban_champion is None


def test_apply_commands(store):
    store.upsert("k", pick_champion="Aatrox")
    assert store.apply(("toggle", "k")) is True
    assert store.get("k").enabled is False
    assert store.apply(("enable", "k", True)) is True
    assert store.get("k").enabled is True
    assert store.apply(("toggle", "missing")) is False
    assert store.apply(("remove", "k")) is True
    assert "k" not in store
    with pytest.raises(ValueError):
        store.apply(("explode", "k"))


def test_rearm(store):
    slot = store.upsert("k", pick_champion="Aatrox")
    slot.has_banned = slot.has_picked = True
    slot.rearm()
    assert not slot.has_progress
    assert slot.terminal_reason == REASON_NONE


def test_progress_is_not_persisted(tmp_path):
    path = tmp_path / "slots.json"
    store = SlotStore(str(path))
    slot = store.upsert("k", pick_champion="Aatrox", ban_champion="Yasuo", auto_lock=False)
    slot.has_picked = True
    slot.has_banned = True
    store.save()

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {"slots": {"k": {"pick_champion": "Aatrox", "ban_champion": "Yasuo", "auto_lock": False, "enabled": True}}}

    again = SlotStore(str(path)).load().get("k")
    assert again.auto_lock is False
    assert again.has_picked is False and again.has_banned is False


def test_load_legacy_list_and_missing_file(tmp_path):
    path = tmp_path / "slots.json"
    assert len(SlotStore(str(path)).load()) == 0

    path.write_text(json.dumps([{"slot_id": "a", "pick_champion": "Ahri"}, {"pick_champion": "x"}]), encoding="utf-8")
    store = SlotStore(str(path)).load()
    assert [s.slot_id for s in store] == ["a"]


def test_default_path_per_profile(monkeypatch):
    from slot_store import default_slots_path

    monkeypatch.delenv("AUTOPICK_SLOTS_FILE", raising=False)
    monkeypatch.setenv("APP_PROFILE", "public")
    assert default_slots_path().endswith("autopick_slots.public.json")
    monkeypatch.setenv("AUTOPICK_SLOTS_FILE", "/tmp/x.json")
    assert default_slots_path() == "/tmp/x.json"
