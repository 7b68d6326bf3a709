# autopick.py
# ============================================================
# AutoPick runner / CLI
#   python autopick.py run --pick Aatrox --ban Yasuo
#   python autopick.py slots
#   python autopick.py resolve "wukong"
#
# 환경변수(선택): env_loader.AutoPickConfig 참고
#   LOL_LOCKFILE, AUTOPICK_TICK_SEC, AUTOPICK_API_PORT, ...
# ============================================================
from __future__ import annotations

import argparse
import os
import sys
import threading
from pathlib import Path
from typing import Any, Optional, TextIO

from auto_pick import AutoPickEngine, LockRetryPolicy
from champion_catalog import ChampionCatalog
from env_loader import AutoPickConfig, load_project_env
from lcu_client import LCUClient
from slot_store import SlotStore, default_slots_path
from status_board import StatusBoard, console_renderer


class _Tee:
    """stdout을 콘솔+파일 동시 출력 (한글 깨짐 대비 errors='replace')."""

    def __init__(self, console: TextIO, f: TextIO):
        self._console = console
        self._f = f

    def write(self, s: str) -> int:
        self._console.write(s)
        self._f.write(s)
        return len(s)

    def flush(self) -> None:
        self._console.flush()
        self._f.flush()


def _install_log_file(path: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    f = p.open("a", encoding="utf-8", errors="replace", newline="")
    sys.stdout = _Tee(sys.stdout, f)


class AutoPickRunner:
    """
    고정 주기 타이머 1개가 engine.tick()을 호출.
    tick이 주기보다 오래 걸리면 다음 tick은 그냥 밀린다 (큐잉 없음).
    """

    def __init__(self, engine: AutoPickEngine, period: float = 1.0):
        self.engine = engine
        self.period = max(0.05, float(period))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name="autopick-tick", daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        # 즉시 한 번
        self.engine.tick()
        while not self._stop.wait(self.period):
            self.engine.tick()

    def stop(self, timeout: float = 3.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def join(self) -> None:
        while self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=0.5)


def _start_api(engine: AutoPickEngine, cfg: AutoPickConfig) -> dict:
    if not cfg.api_auto_start:
        return {"enabled": False, "url": None, "msg": "AUTOPICK_API_AUTO_START=0"}

    import uvicorn
    from api_server import bind_engine

    app = bind_engine(engine)
    config = uvicorn.Config(app, host=cfg.api_host, port=cfg.api_port, log_level="warning")
    server = uvicorn.Server(config)
    t = threading.Thread(target=server.run, name="autopick-api", daemon=True)
    t.start()
    return {"enabled": True, "url": f"http://{cfg.api_host}:{cfg.api_port}", "msg": "started", "server": server}


def build_engine(cfg: AutoPickConfig, client: Any = None, catalog: Any = None, store: Optional[SlotStore] = None) -> AutoPickEngine:
    client = client or LCUClient(lockfile=cfg.lockfile, timeout=cfg.lcu_timeout)
    catalog = catalog or ChampionCatalog.load(locale=cfg.ddragon_locale)
    store = store or SlotStore(cfg.slots_file or default_slots_path()).load()
    board = StatusBoard()
    board.add_listener(console_renderer)
    policy = LockRetryPolicy(
        hover_settle=cfg.hover_settle_sec,
        retry_delay=cfg.lock_retry_sec,
        lock_attempts=cfg.lock_attempts,
    )
    return AutoPickEngine(client, catalog, store, board=board, policy=policy, planning_hover=cfg.planning_hover)


def cmd_run(args: argparse.Namespace, cfg: AutoPickConfig, loaded_envs: list) -> int:
    if args.log_file:
        _install_log_file(args.log_file)

    engine = build_engine(cfg)

    if args.pick or args.ban:
        intent = {"pick_champion": args.pick, "ban_champion": args.ban, "auto_lock": not args.no_lock, "enabled": True}
        for spec in (args.pick, args.ban):
            if spec and engine.catalog.resolve(spec) is None:
                print(f"[autopick] WARN '{spec}' does not resolve to a champion (check spelling)", flush=True)
        engine.submit("upsert", args.slot, intent)

    if args.no_api:
        cfg.api_auto_start = False
    api_info = _start_api(engine, cfg)

    print("==================================================")
    print("AutoPick running")
    print(f"- APP_PROFILE : {os.getenv('APP_PROFILE')}")
    print(f"- lockfile    : {cfg.lockfile or '(auto-detect)'}")
    print(f"- slots file  : {engine.store.path}")
    print(f"- tick        : {cfg.tick_sec}s  lock: settle={cfg.hover_settle_sec}s retry={cfg.lock_retry_sec}s x{cfg.lock_attempts}")
    print(f"- api         : enabled={api_info.get('enabled')} url={api_info.get('url')} ({api_info.get('msg')})")
    if loaded_envs:
        print("- loaded env  :")
        for x in loaded_envs:
            print(f"   - {x}")
    else:
        print("- loaded env  : (none)")
    print("==================================================")
    print(flush=True)

    runner = AutoPickRunner(engine, period=cfg.tick_sec)
    runner.start()
    try:
        runner.join()
    except KeyboardInterrupt:
        pass
    finally:
        runner.stop()
        server = api_info.get("server")
        if server is not None:
            server.should_exit = True
    return 0


def cmd_slots(args: argparse.Namespace, cfg: AutoPickConfig) -> int:
    store = SlotStore(cfg.slots_file or default_slots_path()).load()
    if len(store) == 0:
        print(f"(no slots in {store.path})")
        return 0
    for s in store:
        print(f"{s.slot_id}: pick={s.pick_champion or '-'} ban={s.ban_champion or '-'} auto_lock={s.auto_lock} enabled={s.enabled}")
    return 0


def cmd_resolve(args: argparse.Namespace, cfg: AutoPickConfig) -> int:
    catalog = ChampionCatalog.load(locale=cfg.ddragon_locale)
    cid = catalog.resolve(args.name)
    if cid is None:
        print(f"NOT FOUND: {args.name}")
        return 1
    print(f"{args.name} -> {cid} ({catalog.name_for(cid)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="autopick", description="Champion select auto pick/ban")
    sub = ap.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="start the auto pick/ban loop")
    run.add_argument("--pick", default=None, help="champion to auto-pick (name, id or key)")
    run.add_argument("--ban", default=None, help="champion to auto-ban")
    run.add_argument("--no-lock", action="store_true", help="hover only, do not lock in")
    run.add_argument("--slot", default="default", help="slot id to create/update with --pick/--ban")
    run.add_argument("--no-api", action="store_true", help="do not start the local control API")
    run.add_argument("--log-file", default="", help="also append console output to this file")

    sub.add_parser("slots", help="list saved slots")

    res = sub.add_parser("resolve", help="resolve a champion name through Data Dragon")
    res.add_argument("name")
    return ap


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    loaded_envs = load_project_env()
    cfg = AutoPickConfig.from_env()

    if args.cmd == "run":
        return cmd_run(args, cfg, loaded_envs)
    if args.cmd == "slots":
        return cmd_slots(args, cfg)
    if args.cmd == "resolve":
        return cmd_resolve(args, cfg)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
