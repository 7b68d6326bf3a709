from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from champ_select_models import SessionSnapshot, normalize_phase, parse_session, PHASE_CHAMP_SELECT

try:
    import urllib3
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
except Exception:
    pass


class LCUError(RuntimeError):
    """LCU 읽기 실패 (연결 끊김/타임아웃/HTTP 에러)."""


@dataclass
class LCUConn:
    port: int
    password: str
    protocol: str = "https"
    host: str = "127.0.0.1"

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def auth(self) -> Tuple[str, str]:
        return ("riot", self.password)


def read_lockfile(path: str) -> LCUConn:
    """
    Riot lockfile format:
      name:pid:port:password:protocol
    """
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        raw = f.read().strip()
    parts = raw.split(":")
    if len(parts) < 5:
        raise ValueError(f"Invalid lockfile format: {raw}")
    port = int(parts[2])
    password = parts[3]
    protocol = parts[4] or "https"
    return LCUConn(port=port, password=password, protocol=protocol)


def guess_lockfile_paths(explicit: str = "") -> List[str]:
    candidates: List[str] = []
    if explicit:
        candidates.append(explicit)
    env_path = os.getenv("LOL_LOCKFILE")
    if env_path:
        candidates.append(env_path)

    candidates.extend([
        "C:/Riot Games/League of Legends/lockfile",
        "D:/Riot Games/League of Legends/lockfile",
        "C:/Program Files/Riot Games/League of Legends/lockfile",
        "C:/Program Files (x86)/Riot Games/League of Legends/lockfile",
        "/Applications/League of Legends.app/Contents/LoL/lockfile",
    ])
    local_app = os.getenv("LOCALAPPDATA")
    if local_app:
        candidates.append(os.path.join(local_app, "Riot Games", "League of Legends", "lockfile"))

    seen = set()
    uniq = []
    for p in candidates:
        if not p or p in seen:
            continue
        seen.add(p)
        uniq.append(p)
    return uniq


_PORT_RE = re.compile(r"--app-port=(\d+)")
_TOKEN_RE = re.compile(r"--remoting-auth-token=([\w_-]+)")


def parse_process_args(cmdline: str) -> Optional[LCUConn]:
    """LeagueClientUx 커맨드라인에서 --app-port / --remoting-auth-token 추출."""
    pm = _PORT_RE.search(cmdline or "")
    tm = _TOKEN_RE.search(cmdline or "")
    if not pm or not tm:
        return None
    return LCUConn(port=int(pm.group(1)), password=tm.group(1))


def discover_from_process(timeout: float = 5.0) -> Optional[LCUConn]:
    if os.name == "nt":
        cmd = "wmic PROCESS WHERE name='LeagueClientUx.exe' GET commandline"
    else:
        cmd = "ps -A -o args | grep LeagueClientUx"
    try:
        out = subprocess.run(cmd, shell=True, capture_output=True, text=True, timeout=timeout).stdout
    except (OSError, subprocess.SubprocessError):
        return None
    return parse_process_args(out)


def discover_conn(lockfile: str = "") -> Optional[LCUConn]:
    """lockfile 후보 -> 프로세스 커맨드라인 순서로 찾는다. 못 찾으면 None."""
    for p in guess_lockfile_paths(lockfile):
        try:
            if os.path.exists(p):
                return read_lockfile(p)
        except (OSError, ValueError):
            continue
    return discover_from_process()


class _DirectLCUBackend:
    def __init__(self, conn: LCUConn, timeout: float = 2.0):
        self.conn = conn
        self.timeout = timeout
        self._session = requests.Session()
        self._session.verify = False
        self._session.auth = conn.auth

    def _get(self, path: str) -> Any:
        url = self.conn.base_url + path
        r = self._session.get(url, timeout=self.timeout)
        if r.status_code >= 400:
            raise requests.HTTPError(f"{r.status_code} GET {path}: {r.text[:200]}")
        return r.json() if r.text else None

    def _send(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> bool:
        url = self.conn.base_url + path
        try:
            r = self._session.request(method, url, json=body if body is not None else {}, timeout=self.timeout)
        except requests.RequestException as e:
            print(f"[lcu] WARN {method} {path} failed: {e}", flush=True)
            return False
        if 200 <= r.status_code < 300:
            return True
        print(f"[lcu] WARN {method} {path} returned {r.status_code}: {r.text[:200]}", flush=True)
        return False

    def ping(self) -> Tuple[bool, str]:
        try:
            _ = self._get("/lol-gameflow/v1/gameflow-phase")
            return True, "OK"
        except Exception as e:
            return False, str(e)

    def get_gameflow_phase(self) -> str:
        try:
            return normalize_phase(self._get("/lol-gameflow/v1/gameflow-phase"))
        except (requests.RequestException, ValueError) as e:
            raise LCUError(f"gameflow-phase: {e}") from e

    def get_game_mode(self) -> str:
        try:
            sess = self._get("/lol-gameflow/v1/session") or {}
        except (requests.RequestException, ValueError) as e:
            raise LCUError(f"gameflow session: {e}") from e
        return str(((sess.get("gameData") or {}).get("queue") or {}).get("gameMode") or "")

    def get_champ_select_session(self) -> Optional[Dict[str, Any]]:
        try:
            return self._get("/lol-champ-select/v1/session")
        except Exception:
            return None

    def patch_action(self, action_id: int, champion_id: int) -> bool:
        return self._send("PATCH", f"/lol-champ-select/v1/session/actions/{int(action_id)}", {"championId": int(champion_id)})

    def complete_action(self, action_id: int) -> bool:
        return self._send("POST", f"/lol-champ-select/v1/session/actions/{int(action_id)}/complete", {})


class LCUClient:
    """
    세션 클라이언트.
    - lockfile/프로세스에서 접속 정보를 찾고, 끊기면 다음 호출 때 다시 찾는다.
    - hover/lock 은 실패해도 예외 대신 False (서버 상태는 다음 세션 조회로 확인)
    """

    def __init__(self, backend: Any = None, lockfile: str = "", timeout: float = 2.0):
        self._b = backend
        self._lockfile = lockfile
        self._timeout = timeout

    @classmethod
    def from_env_or_guess(cls, timeout: float = 2.0) -> "LCUClient":
        lockfile = (os.getenv("LOL_LOCKFILE") or "").strip()
        conn = discover_conn(lockfile)
        if conn is None:
            raise FileNotFoundError(
                "LCU lockfile을 찾지 못했어.\n"
                "해결: .env(또는 환경변수)에 LOL_LOCKFILE=... 를 설정해줘.\n"
                '예) LOL_LOCKFILE=C:/Riot Games/League of Legends/lockfile'
            )
        return cls(_DirectLCUBackend(conn, timeout=timeout), lockfile=lockfile, timeout=timeout)

    def is_connected(self) -> bool:
        if self._b is not None:
            return True
        conn = discover_conn(self._lockfile)
        if conn is None:
            return False
        self._b = _DirectLCUBackend(conn, timeout=self._timeout)
        print(f"[lcu] discovered client on port {conn.port}", flush=True)
        return True

    def _backend(self) -> Any:
        if self._b is None and not self.is_connected():
            raise LCUError("LCU not connected")
        return self._b

    def _drop(self, err: Exception) -> None:
        # 포트가 바뀌었을 수 있음 (클라이언트 재시작) -> 다음 tick에 재탐색
        if isinstance(err.__cause__, requests.ConnectionError):
            print("[lcu] client lost", flush=True)
            self._b = None

    def ping(self) -> Tuple[bool, str]:
        try:
            return self._backend().ping()
        except LCUError as e:
            return False, str(e)

    def get_phase(self) -> str:
        try:
            return self._backend().get_gameflow_phase()
        except LCUError as e:
            self._drop(e)
            raise

    def get_game_mode(self) -> str:
        try:
            return self._backend().get_game_mode()
        except LCUError as e:
            self._drop(e)
            raise

    def get_session(self) -> Optional[SessionSnapshot]:
        raw = self._backend().get_champ_select_session()
        return parse_session(raw, phase=PHASE_CHAMP_SELECT)

    def hover(self, action_id: int, champion_id: int) -> bool:
        return self._backend().patch_action(action_id, champion_id)

    def lock(self, action_id: int) -> bool:
        return self._backend().complete_action(action_id)
