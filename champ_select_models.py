# champ_select_models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

# /lol-gameflow/v1/gameflow-phase 값
PHASE_NONE = "None"
PHASE_CHAMP_SELECT = "ChampSelect"

# session.timer.phase
TIMER_PLANNING = "PLANNING"
TIMER_BAN_PICK = "BAN_PICK"
TIMER_FINALIZATION = "FINALIZATION"
TIMER_UNKNOWN = "UNKNOWN"

ACTION_PICK = "pick"
ACTION_BAN = "ban"


def normalize_phase(raw: Any) -> str:
    """LCU는 phase를 JSON 문자열로 준다. 모르는 값은 그대로 두되 공백/따옴표만 정리."""
    s = str(raw if raw is not None else PHASE_NONE).strip().strip('"')
    return s or PHASE_NONE


def normalize_timer_phase(raw: Any) -> str:
    s = str(raw or "").strip().upper()
    if s in (TIMER_PLANNING, TIMER_BAN_PICK, TIMER_FINALIZATION):
        return s
    return TIMER_UNKNOWN


def _int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ActionDescriptor:
    id: int
    type: str
    actor_cell_id: int
    champion_id: int = 0
    in_progress: bool = False
    completed: bool = False

    @property
    def is_pick(self) -> bool:
        return self.type == ACTION_PICK

    @property
    def is_ban(self) -> bool:
        return self.type == ACTION_BAN

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ActionDescriptor":
        return cls(
            id=_int(raw.get("id")),
            type=str(raw.get("type") or "").strip().lower(),
            actor_cell_id=_int(raw.get("actorCellId"), -1),
            champion_id=_int(raw.get("championId")),
            in_progress=bool(raw.get("isInProgress")),
            completed=bool(raw.get("completed")),
        )


@dataclass(frozen=True)
class SessionSnapshot:
    phase: str = PHASE_CHAMP_SELECT
    timer_phase: str = TIMER_UNKNOWN
    local_cell_id: int = -1
    actions: Tuple[ActionDescriptor, ...] = ()
    ally_cell_ids: FrozenSet[int] = field(default_factory=frozenset)
    enemy_champion_ids: FrozenSet[int] = field(default_factory=frozenset)

    def my_actions(self) -> List[ActionDescriptor]:
        return [a for a in self.actions if a.actor_cell_id == self.local_cell_id]

    def open_action(self, action_type: str) -> Optional[ActionDescriptor]:
        """로컬 플레이어의 아직 완료되지 않은 첫 번째 action (세션 순서 기준)."""
        for a in self.actions:
            if a.actor_cell_id == self.local_cell_id and a.type == action_type and not a.completed:
                return a
        return None


def _flatten(groups: Any) -> Iterable[Dict[str, Any]]:
    # actions: [[{...}, {...}], [{...}]] 형태 (턴 단위 그룹)
    for group in groups or []:
        if isinstance(group, dict):
            yield group
            continue
        if not isinstance(group, list):
            continue
        for a in group:
            if isinstance(a, dict):
                yield a


def parse_session(raw: Optional[Dict[str, Any]], phase: str = PHASE_CHAMP_SELECT) -> Optional[SessionSnapshot]:
    """
    /lol-champ-select/v1/session JSON -> SessionSnapshot
    세션이 아니거나(에러 바디 등) localPlayerCellId가 없으면 None.
    """
    if not isinstance(raw, dict):
        return None
    if raw.get("httpStatus") or raw.get("errorCode"):
        return None
    if raw.get("localPlayerCellId") is None:
        return None

    actions = tuple(ActionDescriptor.from_raw(a) for a in _flatten(raw.get("actions")))

    ally_cells = frozenset(
        _int(p.get("cellId"), -1) for p in (raw.get("myTeam") or []) if isinstance(p, dict)
    )
    enemy_champs = frozenset(
        cid
        for cid in (_int(p.get("championId")) for p in (raw.get("theirTeam") or []) if isinstance(p, dict))
        if cid != 0
    )

    return SessionSnapshot(
        phase=phase,
        timer_phase=normalize_timer_phase((raw.get("timer") or {}).get("phase")),
        local_cell_id=_int(raw.get("localPlayerCellId"), -1),
        actions=actions,
        ally_cell_ids=ally_cells,
        enemy_champion_ids=enemy_champs,
    )
