# status_board.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

OFFLINE = "offline"
DISABLED = "disabled"
ARMED = "armed"
BAN_PENDING = "ban_pending"
BANNED = "banned"
PICK_PENDING = "pick_pending"
PICKED = "picked"
BANNED_BY_OPPONENT = "banned_by_opponent"
TAKEN_BY_TEAMMATE = "taken_by_teammate"

_LABELS = {
    OFFLINE: "Offline",
    DISABLED: "OFF",
    ARMED: "ON",
    BAN_PENDING: "Ban",
    BANNED: "Banned!",
    PICK_PENDING: "Pick",
    PICKED: "Picked!",
    BANNED_BY_OPPONENT: "BANNED!",
    TAKEN_BY_TEAMMATE: "TAKEN!",
}


@dataclass(frozen=True)
class SlotStatus:
    kind: str
    champion: str = ""

    def label(self) -> str:
        head = _LABELS.get(self.kind, self.kind)
        return f"{head} {self.champion}".strip()

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "champion": self.champion, "label": self.label()}


Listener = Callable[[str, SlotStatus], None]


class StatusBoard:
    """
    엔진이 tick마다 publish, 다른 스레드(API)는 snapshot()만 읽는다.
    dict를 통째로 교체하므로 읽는 쪽은 락 없이 일관된 값을 본다.
    """

    def __init__(self):
        self._statuses: Dict[str, SlotStatus] = {}
        self._listeners: List[Listener] = []

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def snapshot(self) -> Dict[str, SlotStatus]:
        return self._statuses

    def get(self, slot_id: str) -> Optional[SlotStatus]:
        return self._statuses.get(slot_id)

    def publish(self, statuses: Dict[str, SlotStatus]) -> None:
        prev = self._statuses
        self._statuses = dict(statuses)
        for slot_id, st in statuses.items():
            if prev.get(slot_id) == st:
                continue
            for fn in self._listeners:
                try:
                    fn(slot_id, st)
                except Exception as e:
                    print(f"[status] ERROR listener failed: {e}", flush=True)


def console_renderer(slot_id: str, status: SlotStatus) -> None:
    print(f"[status] {slot_id}: {status.label()}", flush=True)
