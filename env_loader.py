# env_loader.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

_LOADED: List[str] = []
_DONE = False


def _project_dir() -> Path:
    # 이 파일이 있는 폴더를 "프로젝트 루트"로 가정
    return Path(__file__).resolve().parent


def truthy(v: Optional[str], default: bool = False) -> bool:
    s = (v or "").strip().lower()
    if not s:
        return default
    return s in ("1", "true", "yes", "y", "on")


def current_profile() -> str:
    p = (os.getenv("APP_PROFILE") or "personal").strip().lower()
    if p not in ("personal", "public"):
        p = "personal"
    return p


def load_project_env(profile: str | None = None, override: bool = False) -> List[str]:
    """
    profile 우선순위:
      1) 명시 인자 profile
      2) 환경변수 APP_PROFILE
      3) 기본 "personal"

    로드 우선순위:
      - .env.<profile> 가 있으면 그걸 먼저 로드
      - 이어서 .env 로드 (먼저 로드된 값 우선)

    반환: 실제로 로드된 env 파일 경로 목록
    """
    global _DONE
    if _DONE:
        # 중복 로드 방지 (여러 모듈에서 호출해도 OK)
        return list(_LOADED)

    proj = _project_dir()

    if profile:
        os.environ["APP_PROFILE"] = profile.strip().lower()
    p = current_profile()
    os.environ["APP_PROFILE"] = p

    env_profile = proj / f".env.{p}"
    env_default = proj / ".env"

    if env_profile.exists():
        load_dotenv(dotenv_path=env_profile, override=override)
        _LOADED.append(str(env_profile))

    # profile env에 키가 없을 수도 있으니 .env도 이어서 로드
    if env_default.exists():
        load_dotenv(dotenv_path=env_default, override=False if _LOADED else override)
        _LOADED.append(str(env_default))

    _DONE = True
    return list(_LOADED)


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"[config] WARN {name}={raw!r} is not a number, using {default}", flush=True)
        return default


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"[config] WARN {name}={raw!r} is not an integer, using {default}", flush=True)
        return default


@dataclass
class AutoPickConfig:
    lockfile: str = ""
    tick_sec: float = 1.0
    hover_settle_sec: float = 0.6
    lock_retry_sec: float = 0.8
    lock_attempts: int = 2
    planning_hover: bool = True
    lcu_timeout: float = 2.0
    slots_file: str = ""
    api_auto_start: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = 12146
    ddragon_locale: str = "en_US"

    @classmethod
    def from_env(cls) -> "AutoPickConfig":
        load_project_env()
        return cls(
            lockfile=(os.getenv("LOL_LOCKFILE") or "").strip(),
            tick_sec=_float_env("AUTOPICK_TICK_SEC", 1.0),
            hover_settle_sec=_float_env("AUTOPICK_HOVER_SETTLE_SEC", 0.6),
            lock_retry_sec=_float_env("AUTOPICK_LOCK_RETRY_SEC", 0.8),
            lock_attempts=max(1, _int_env("AUTOPICK_LOCK_ATTEMPTS", 2)),
            planning_hover=truthy(os.getenv("AUTOPICK_PLANNING_HOVER"), default=True),
            lcu_timeout=_float_env("AUTOPICK_LCU_TIMEOUT", 2.0),
            slots_file=(os.getenv("AUTOPICK_SLOTS_FILE") or "").strip(),
            api_auto_start=truthy(os.getenv("AUTOPICK_API_AUTO_START"), default=True),
            api_host=(os.getenv("AUTOPICK_API_HOST") or "127.0.0.1").strip(),
            api_port=_int_env("AUTOPICK_API_PORT", 12146),
            ddragon_locale=(os.getenv("AUTOPICK_DDRAGON_LOCALE") or "en_US").strip(),
        )
