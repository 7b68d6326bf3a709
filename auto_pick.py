# auto_pick.py
# ============================================================
# 챔프 셀렉트 자동 밴/픽 엔진
# - tick()마다 세션 스냅샷 1회 조회 -> slot별로 밴 -> 픽 순서로 진행
# - hover(PATCH) 후 lock(POST /complete), lock 실패 시 짧게 쉬고 재시도
# - 세션 밖(phase != ChampSelect)으로 나가면 진행 플래그 리셋 (다음 판 재무장)
# ============================================================
from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from champ_select_models import (
    ACTION_BAN,
    ACTION_PICK,
    PHASE_CHAMP_SELECT,
    TIMER_PLANNING,
    SessionSnapshot,
)
from lcu_client import LCUError
from preemption import PREEMPTED_BANNED, PREEMPTED_TAKEN, preemption_reason
from slot_store import (
    REASON_BANNED,
    REASON_BANNING,
    REASON_NONE,
    REASON_PICKED,
    REASON_PICKING,
    REASON_PREEMPTED_BANNED,
    REASON_PREEMPTED_TAKEN,
    AutomationSlot,
    SlotStore,
)
from status_board import (
    ARMED,
    BAN_PENDING,
    BANNED,
    BANNED_BY_OPPONENT,
    DISABLED,
    OFFLINE,
    PICK_PENDING,
    PICKED,
    TAKEN_BY_TEAMMATE,
    SlotStatus,
    StatusBoard,
)

Resolver = Callable[[Optional[str]], Optional[int]]

PLAN_NOOP = "noop"
PLAN_COMMIT = "commit"
PLAN_PREEMPTED = "preempted"
PLAN_UNRESOLVED = "unresolved"


def _log(msg: str) -> None:
    print(f"[auto_pick] {msg}", flush=True)


# -------------------------
# two-step commit
# -------------------------
@dataclass(frozen=True)
class LockRetryPolicy:
    hover_settle: float = 0.6
    retry_delay: float = 0.8
    lock_attempts: int = 2


DEFAULT_POLICY = LockRetryPolicy()


def commit_action(
    client: Any,
    action_id: int,
    champion_id: int,
    auto_lock: bool,
    policy: LockRetryPolicy = DEFAULT_POLICY,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    hover -> (auto_lock이면) lock, lock 실패 시 retry_delay 후 재시도.
    False면 호출자는 완료 플래그를 세우지 않는다 -> 다음 tick에 hover부터 다시.
    """
    if not client.hover(action_id, champion_id):
        _log(f"WARN hover action {action_id} with champion {champion_id} failed")
        return False
    _log(f"hover action {action_id} with champion {champion_id}: sent")

    if not auto_lock:
        return True

    sleep(policy.hover_settle)
    for attempt in range(max(1, policy.lock_attempts)):
        if attempt > 0:
            sleep(policy.retry_delay)
        locked = client.lock(action_id)
        _log(f"lock action {action_id} (try {attempt + 1}): {'success' if locked else 'failed'}")
        if locked:
            return True

    _log(f"WARN failed to lock action {action_id} after retry, will retry next poll")
    return False


# -------------------------
# pure decision
# -------------------------
@dataclass(frozen=True)
class SlotPlan:
    kind: str
    action_type: str = ""
    action_id: int = 0
    champion_id: int = 0
    reason: str = ""


NOOP = SlotPlan(PLAN_NOOP)


def plan_ban(slot: AutomationSlot, session: SessionSnapshot, resolve: Resolver) -> SlotPlan:
    if slot.has_banned or not slot.ban_champion:
        return NOOP
    act = session.open_action(ACTION_BAN)
    # 아직 내 차례 아님
    if act is None or not act.in_progress:
        return NOOP
    cid = resolve(slot.ban_champion)
    if not cid:
        return SlotPlan(PLAN_UNRESOLVED, ACTION_BAN)
    return SlotPlan(PLAN_COMMIT, ACTION_BAN, act.id, int(cid))


def plan_pick(slot: AutomationSlot, session: SessionSnapshot, resolve: Resolver) -> SlotPlan:
    if slot.has_picked or not slot.pick_champion:
        return NOOP
    cid = resolve(slot.pick_champion)
    if not cid:
        # 내 차례일 때만 경고가 의미 있음
        act = session.open_action(ACTION_PICK)
        if act is not None and act.in_progress:
            return SlotPlan(PLAN_UNRESOLVED, ACTION_PICK)
        return NOOP

    reason = preemption_reason(session, cid)
    if reason:
        return SlotPlan(PLAN_PREEMPTED, ACTION_PICK, 0, int(cid), reason)

    act = session.open_action(ACTION_PICK)
    if act is None or not act.in_progress:
        return NOOP
    return SlotPlan(PLAN_COMMIT, ACTION_PICK, act.id, int(cid))


def plan_slot(slot: AutomationSlot, session: SessionSnapshot, resolve: Resolver) -> Tuple[SlotPlan, SlotPlan]:
    """(ban plan, pick plan). 네트워크 없이 스냅샷만 보고 결정."""
    if not slot.enabled:
        return NOOP, NOOP
    return plan_ban(slot, session, resolve), plan_pick(slot, session, resolve)


def slot_status(slot: AutomationSlot, in_champ_select: bool, name: Callable[[Optional[str]], str]) -> SlotStatus:
    if not slot.enabled:
        return SlotStatus(DISABLED)
    if slot.terminal_reason == REASON_PREEMPTED_BANNED:
        return SlotStatus(BANNED_BY_OPPONENT, name(slot.pick_champion))
    if slot.terminal_reason == REASON_PREEMPTED_TAKEN:
        return SlotStatus(TAKEN_BY_TEAMMATE, name(slot.pick_champion))
    if slot.has_picked and slot.pick_champion:
        return SlotStatus(PICKED, name(slot.pick_champion))
    if not in_champ_select:
        return SlotStatus(ARMED)
    if slot.ban_champion and not slot.has_banned:
        return SlotStatus(BAN_PENDING, name(slot.ban_champion))
    if slot.pick_champion and not slot.has_picked:
        return SlotStatus(PICK_PENDING, name(slot.pick_champion))
    if slot.has_banned and slot.ban_champion:
        return SlotStatus(BANNED, name(slot.ban_champion))
    return SlotStatus(ARMED)


# -------------------------
# engine
# -------------------------
class AutoPickEngine:
    def __init__(
        self,
        client: Any,
        catalog: Any,
        store: SlotStore,
        board: Optional[StatusBoard] = None,
        policy: LockRetryPolicy = DEFAULT_POLICY,
        planning_hover: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.catalog = catalog
        self.store = store
        self.board = board or StatusBoard()
        self.policy = policy
        self.planning_hover = planning_hover
        self._sleep = sleep
        self._commands: "queue.SimpleQueue[Tuple[Any, ...]]" = queue.SimpleQueue()
        self._in_flight = threading.Lock()
        self.last_phase: Optional[str] = None
        self.connected = False

    # ---- external commands (다른 스레드에서 호출 가능) ----
    def submit(self, *command: Any) -> None:
        self._commands.put(tuple(command))

    def _drain_commands(self) -> None:
        changed = False
        while True:
            try:
                cmd = self._commands.get_nowait()
            except queue.Empty:
                break
            try:
                if self.store.apply(cmd):
                    changed = True
                    _log(f"slot command applied: {cmd[0]} {cmd[1]}")
            except (ValueError, IndexError, TypeError) as e:
                _log(f"WARN bad slot command {cmd!r}: {e}")
        if changed:
            try:
                self.store.save()
            except OSError as e:
                _log(f"ERROR could not save slots: {e}")

    # ---- helpers ----
    def _resolve(self, spec: Optional[str]) -> Optional[int]:
        if not spec:
            return None
        return self.catalog.resolve(spec)

    def _name(self, spec: Optional[str]) -> str:
        cid = self._resolve(spec)
        if cid:
            return self.catalog.name_for(cid, default=spec or "")
        return spec or ""

    def _render(self, in_champ_select: bool) -> None:
        if not self.connected:
            out = {s.slot_id: SlotStatus(OFFLINE) for s in self.store}
        else:
            out = {s.slot_id: slot_status(s, in_champ_select, self._name) for s in self.store}
        self.board.publish(out)

    # ---- lifecycle ----
    def on_phase_exit(self) -> int:
        """진행 플래그가 있는 slot을 모두 재무장. 멱등."""
        n = 0
        for slot in self.store:
            if slot.has_progress or slot.terminal_reason != REASON_NONE:
                slot.rearm()
                n += 1
        if n:
            _log(f"left champ select, re-armed {n} slot(s)")
        return n

    # ---- tick ----
    def tick(self) -> bool:
        """False면 이전 tick이 아직 진행 중이라 건너뜀."""
        if not self._in_flight.acquire(blocking=False):
            return False
        try:
            self._tick()
        except Exception as e:
            _log(f"ERROR tick failed: {e!r}")
        finally:
            self._in_flight.release()
        return True

    def _tick(self) -> None:
        self._drain_commands()

        if len(self.store) == 0:
            return

        self.connected = bool(self.client.is_connected())
        if not self.connected:
            self._render(False)
            return

        try:
            phase = self.client.get_phase()
        except LCUError as e:
            _log(f"WARN phase read failed: {e}")
            return

        if phase != self.last_phase:
            _log(f"phase {self.last_phase} -> {phase}")
            self.last_phase = phase

        if phase != PHASE_CHAMP_SELECT:
            self.on_phase_exit()
            self._render(False)
            return

        # TFT는 밴/픽 없음
        try:
            mode = self.client.get_game_mode()
        except LCUError:
            mode = ""
        if mode == "TFT":
            self._render(False)
            return

        try:
            session = self.client.get_session()
        except LCUError as e:
            _log(f"WARN session read failed: {e}")
            return
        if session is None:
            return

        if session.timer_phase == TIMER_PLANNING:
            if self.planning_hover:
                self._planning_hover(session)
            self._render(True)
            return

        for slot in self.store:
            if not slot.enabled:
                continue
            try:
                self._run_ban(slot, session)
                self._run_pick(slot, session)
            except Exception as e:
                # slot 하나의 실패가 다른 slot에 영향 주지 않게
                _log(f"ERROR slot {slot.slot_id}: {e!r}")

        self._render(True)

    def _planning_hover(self, session: SessionSnapshot) -> None:
        for slot in self.store:
            if not slot.enabled or slot.has_picked or not slot.pick_champion:
                continue
            cid = self._resolve(slot.pick_champion)
            if not cid:
                continue
            act = session.open_action(ACTION_PICK)
            if act is None or act.champion_id == cid:
                continue
            _log(f"PLANNING: hovering {slot.pick_champion} as intent")
            try:
                self.client.hover(act.id, cid)
            except Exception as e:
                _log(f"WARN planning hover failed: {e!r}")

    def _commit(self, slot: AutomationSlot, plan: SlotPlan) -> bool:
        return commit_action(
            self.client,
            plan.action_id,
            plan.champion_id,
            slot.auto_lock,
            policy=self.policy,
            sleep=self._sleep,
        )

    def _run_ban(self, slot: AutomationSlot, session: SessionSnapshot) -> None:
        plan = plan_ban(slot, session, self._resolve)
        if plan.kind == PLAN_UNRESOLVED:
            _log(f"WARN could not resolve ban champion: {slot.ban_champion}")
            return
        if plan.kind != PLAN_COMMIT:
            return

        _log(f"auto-banning {slot.ban_champion} (ID: {plan.champion_id})")
        prev = slot.terminal_reason
        # 픽 선점 결과는 밴 결과로 덮어쓰지 않는다
        keep = prev in (REASON_PREEMPTED_BANNED, REASON_PREEMPTED_TAKEN)
        if not keep:
            slot.terminal_reason = REASON_BANNING
        ok = False
        try:
            ok = self._commit(slot, plan)
        finally:
            if keep or not ok:
                slot.terminal_reason = prev
            else:
                slot.terminal_reason = REASON_BANNED
        if ok:
            slot.has_banned = True

    def _run_pick(self, slot: AutomationSlot, session: SessionSnapshot) -> None:
        plan = plan_pick(slot, session, self._resolve)
        if plan.kind == PLAN_UNRESOLVED:
            _log(f"WARN could not resolve pick champion: {slot.pick_champion}")
            return
        if plan.kind == PLAN_PREEMPTED:
            if plan.reason == PREEMPTED_BANNED:
                _log(f"WARN {slot.pick_champion} was banned, cannot auto-pick")
                slot.terminal_reason = REASON_PREEMPTED_BANNED
            elif plan.reason == PREEMPTED_TAKEN:
                _log(f"WARN {slot.pick_champion} already picked by someone else")
                slot.terminal_reason = REASON_PREEMPTED_TAKEN
            slot.has_picked = True
            return
        if plan.kind != PLAN_COMMIT:
            return

        _log(f"auto-picking {slot.pick_champion} (ID: {plan.champion_id})")
        prev = slot.terminal_reason
        slot.terminal_reason = REASON_PICKING
        ok = False
        try:
            ok = self._commit(slot, plan)
        finally:
            slot.terminal_reason = REASON_PICKED if ok else prev
        if ok:
            slot.has_picked = True

    def statuses(self) -> Dict[str, SlotStatus]:
        return self.board.snapshot()
