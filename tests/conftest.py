"""Shared fixtures: fake LCU client, in-memory champion catalog, snapshot builders."""
from typing import List, Optional

import pytest

from auto_pick import AutoPickEngine, LockRetryPolicy
from champ_select_models import ActionDescriptor, SessionSnapshot, TIMER_BAN_PICK
from champion_catalog import ChampionCatalog
from slot_store import SlotStore
from status_board import StatusBoard

CHAMPION_DATA = {
    "Aatrox": {"id": "Aatrox", "key": "266", "name": "Aatrox"},
    "Yasuo": {"id": "Yasuo", "key": "157", "name": "Yasuo"},
    "MonkeyKing": {"id": "MonkeyKing", "key": "62", "name": "Wukong"},
    "KSante": {"id": "KSante", "key": "897", "name": "K'Sante"},
    "Ahri": {"id": "Ahri", "key": "103", "name": "Ahri"},
}

LOCAL_CELL = 2


class FakeClient:
    """Scripted session client. Records every hover/lock call."""

    def __init__(self, phase="ChampSelect", session=None, connected=True):
        self.connected = connected
        self.phase = phase
        self.session = session
        self.game_mode = "CLASSIC"
        self.hover_results: List[bool] = []
        self.lock_results: List[bool] = []
        self.hovers = []
        self.locks = []
        self.successful_locks = []
        self.phase_error: Optional[Exception] = None

    def is_connected(self):
        return self.connected

    def get_phase(self):
        if self.phase_error is not None:
            raise self.phase_error
        return self.phase

    def get_game_mode(self):
        return self.game_mode

    def get_session(self):
        return self.session

    def hover(self, action_id, champion_id):
        self.hovers.append((action_id, champion_id))
        return self.hover_results.pop(0) if self.hover_results else True

    def lock(self, action_id):
        self.locks.append(action_id)
        ok = self.lock_results.pop(0) if self.lock_results else True
        if ok:
            self.successful_locks.append(action_id)
        return ok


def make_action(id, type, actor=LOCAL_CELL, champion=0, in_progress=False, completed=False):
    return ActionDescriptor(
        id=id,
        type=type,
        actor_cell_id=actor,
        champion_id=champion,
        in_progress=in_progress,
        completed=completed,
    )


def make_session(*actions, timer=TIMER_BAN_PICK, local=LOCAL_CELL):
    return SessionSnapshot(timer_phase=timer, local_cell_id=local, actions=tuple(actions))


@pytest.fixture
def catalog():
    return ChampionCatalog(CHAMPION_DATA, version="14.24.1")


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def store():
    return SlotStore(path=None)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def engine(client, catalog, store, sleeps):
    return AutoPickEngine(
        client,
        catalog,
        store,
        board=StatusBoard(),
        policy=LockRetryPolicy(hover_settle=0.6, retry_delay=0.8, lock_attempts=2),
        sleep=sleeps.append,
    )


