# slot_store.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

# terminal_reason 값
REASON_NONE = "none"
REASON_BANNED = "banned"
REASON_BANNING = "banning"
REASON_PICKED = "picked"
REASON_PICKING = "picking"
REASON_PREEMPTED_BANNED = "preempted_banned"
REASON_PREEMPTED_TAKEN = "preempted_taken"

# 디스크에 남기는 건 intent 뿐. 진행 상태(has_banned/has_picked)는 세션 한정.
INTENT_KEYS = ("pick_champion", "ban_champion", "auto_lock", "enabled")


@dataclass
class AutomationSlot:
    slot_id: str
    pick_champion: Optional[str] = None
    ban_champion: Optional[str] = None
    auto_lock: bool = True
    enabled: bool = True

    has_banned: bool = False
    has_picked: bool = False
    terminal_reason: str = REASON_NONE

    @property
    def has_progress(self) -> bool:
        return self.has_banned or self.has_picked

    def rearm(self) -> None:
        self.has_banned = False
        self.has_picked = False
        self.terminal_reason = REASON_NONE

    def intent(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in INTENT_KEYS}


def _clean_spec(x: Any) -> Optional[str]:
    s = str(x).strip() if x is not None else ""
    return s or None


def slot_from_intent(slot_id: str, data: Dict[str, Any]) -> AutomationSlot:
    return AutomationSlot(
        slot_id=str(slot_id),
        pick_champion=_clean_spec(data.get("pick_champion")),
        ban_champion=_clean_spec(data.get("ban_champion")),
        auto_lock=data.get("auto_lock") is not False,
        enabled=data.get("enabled") is not False,
    )


def default_slots_path() -> str:
    """
    작업폴더(cwd) 영향 제거:
    - 이 파일 기준 폴더에 저장
    - profile별로 파일 분리: autopick_slots.personal.json / autopick_slots.public.json
    """
    override = (os.getenv("AUTOPICK_SLOTS_FILE") or "").strip()
    if override:
        return override
    here = Path(__file__).resolve().parent
    profile = (os.getenv("APP_PROFILE") or "personal").strip().lower()
    return str(here / f"autopick_slots.{profile}.json")


class SlotStore:
    """
    slot_id -> AutomationSlot
    엔진 스레드만 쓴다 (외부 요청은 엔진이 tick 시작 때 apply).
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._slots: Dict[str, AutomationSlot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[AutomationSlot]:
        return iter(list(self._slots.values()))

    def __contains__(self, slot_id: str) -> bool:
        return slot_id in self._slots

    def get(self, slot_id: str) -> Optional[AutomationSlot]:
        return self._slots.get(slot_id)

    def upsert(self, slot_id: str, **intent: Any) -> AutomationSlot:
        """처음 보는 slot이면 만들고, 있으면 intent만 갱신 (진행 상태는 유지)."""
        slot = self._slots.get(slot_id)
        if slot is None:
            slot = slot_from_intent(slot_id, intent)
            self._slots[slot_id] = slot
            return slot
        for k in INTENT_KEYS:
            if k not in intent:
                continue
            v = intent[k]
            if k in ("pick_champion", "ban_champion"):
                v = _clean_spec(v)
            else:
                v = bool(v)
            setattr(slot, k, v)
        return slot

    def remove(self, slot_id: str) -> bool:
        return self._slots.pop(slot_id, None) is not None

    def set_enabled(self, slot_id: str, enabled: bool) -> Optional[AutomationSlot]:
        slot = self._slots.get(slot_id)
        if slot is not None:
            slot.enabled = bool(enabled)
        return slot

    def toggle(self, slot_id: str) -> Optional[AutomationSlot]:
        slot = self._slots.get(slot_id)
        if slot is not None:
            slot.enabled = not slot.enabled
        return slot

    def apply(self, command: Tuple[Any, ...]) -> bool:
        """
        ("upsert", slot_id, {intent...}) / ("toggle", slot_id) /
        ("enable", slot_id, bool) / ("remove", slot_id)
        반환: 저장이 필요한 변경이 있었는지
        """
        op = command[0]
        slot_id = str(command[1])
        if op == "upsert":
            self.upsert(slot_id, **dict(command[2] or {}))
            return True
        if op == "toggle":
            return self.toggle(slot_id) is not None
        if op == "enable":
            return self.set_enabled(slot_id, bool(command[2])) is not None
        if op == "remove":
            return self.remove(slot_id)
        raise ValueError(f"unknown slot command: {op}")

    # ---- persistence ----
    def load(self) -> "SlotStore":
        path = self.path
        if not path or not os.path.exists(path):
            return self

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("slots", data)
        if isinstance(data, dict):
            items = list(data.items())
        else:
            # 구버전: [{"slot_id": ..., ...}, ...]
            items = [(d.get("slot_id"), d) for d in (data or []) if isinstance(d, dict)]

        for slot_id, intent in items:
            if not slot_id or not isinstance(intent, dict):
                continue
            self._slots[str(slot_id)] = slot_from_intent(str(slot_id), intent)
        return self

    def save(self) -> None:
        if not self.path:
            return
        out = {"slots": {s.slot_id: s.intent() for s in self._slots.values()}}
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(out, f, ensure_ascii=False, indent=2)
