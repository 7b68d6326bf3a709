# preemption.py
from __future__ import annotations

from typing import Optional

from champ_select_models import SessionSnapshot

PREEMPTED_BANNED = "banned"
PREEMPTED_TAKEN = "taken"


def is_banned(session: SessionSnapshot, champion_id: int) -> bool:
    """완료된 ban action 중 하나라도 해당 챔피언이면 True (팀 무관)."""
    cid = int(champion_id)
    return any(a.is_ban and a.completed and a.champion_id == cid for a in session.actions)


def is_taken_by_other(session: SessionSnapshot, champion_id: int, local_cell_id: int) -> bool:
    # 첫 매치만 보지 않고 전체 action 목록을 스캔
    cid = int(champion_id)
    return any(
        a.is_pick and a.completed and a.champion_id == cid and a.actor_cell_id != local_cell_id
        for a in session.actions
    )


def preemption_reason(session: SessionSnapshot, champion_id: int) -> Optional[str]:
    if is_banned(session, champion_id):
        return PREEMPTED_BANNED
    if is_taken_by_other(session, champion_id, session.local_cell_id):
        return PREEMPTED_TAKEN
    return None
