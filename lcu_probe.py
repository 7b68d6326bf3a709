# lcu_probe.py
import time

from champ_select_models import PHASE_CHAMP_SELECT
from env_loader import load_project_env
from lcu_client import LCUClient, LCUError


def main():
    load_project_env()
    lcu = LCUClient.from_env_or_guess()
    ok, msg = lcu.ping()
    print("PING:", ok, msg)
    for i in range(10):
        try:
            phase = lcu.get_phase()
        except LCUError as e:
            print(f"[{i}] phase read failed: {e}")
            time.sleep(1)
            continue
        sess = lcu.get_session() if phase == PHASE_CHAMP_SELECT else None
        if sess is None:
            print(f"[{i}] phase={phase}")
        else:
            mine = [(a.type, a.id, a.champion_id, a.in_progress, a.completed) for a in sess.my_actions()]
            print(f"[{i}] phase={phase} timer={sess.timer_phase} cell={sess.local_cell_id} mine={mine} enemy={sorted(sess.enemy_champion_ids)}")
        time.sleep(1)


if __name__ == "__main__":
    main()
