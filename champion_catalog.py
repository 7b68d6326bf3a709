import json
import os
import time
from pathlib import Path
from typing import Dict, Optional

import requests

DDRAGON = "https://ddragon.leagueoflegends.com"
FALLBACK_VERSION = "14.24.1"


def _cache_path(locale: str) -> str:
    here = Path(__file__).resolve().parent
    return str(here / f"ddragon_champions_{locale}.json")


def _get_latest_ddragon_version(timeout=10) -> str:
    # 최신 Data Dragon 버전
    url = f"{DDRAGON}/api/versions.json"
    return requests.get(url, timeout=timeout).json()[0]


def _download_champion_json(version: str, locale: str, timeout=15) -> dict:
    url = f"{DDRAGON}/cdn/{version}/data/{locale}/champion.json"
    return requests.get(url, timeout=timeout).json()


def norm(s: str) -> str:
    s = (s or "").strip().lower()
    for ch in [" ", ".", "'", "’", "-", "_", "·", "&"]:
        s = s.replace(ch, "")
    return s


def build_index(data: dict) -> dict:
    """
    champion.json 의 data 부분 -> 조회용 인덱스
      {
        "id_to_name": { 266: "Aatrox", 62: "Wukong", ... },
        "name_to_id": { "aatrox": 266, "wukong": 62, ... },   # norm(display name)
        "ddid_to_id": { "aatrox": 266, "monkeyking": 62, ... }  # norm(canonical id)
      }
    """
    id_to_name: Dict[int, str] = {}
    name_to_id: Dict[str, int] = {}
    ddid_to_id: Dict[str, int] = {}

    for ddid, champ in (data or {}).items():
        # champ["key"] = "266" (championId)
        try:
            cid = int(champ["key"])
        except (KeyError, TypeError, ValueError):
            continue
        name = str(champ.get("name") or ddid)
        id_to_name[cid] = name
        name_to_id[norm(name)] = cid
        ddid_to_id[norm(str(champ.get("id") or ddid))] = cid

    return {"id_to_name": id_to_name, "name_to_id": name_to_id, "ddid_to_id": ddid_to_id}


def load_champion_data(locale: str = "en_US", force_refresh: bool = False) -> dict:
    """
    반환: {"version": "...", "fetched_at": ..., "data": {ddid: champ, ...}}
    네트워크가 안 되면 캐시(버전 무관)라도 쓴다.
    """
    path = _cache_path(locale)
    cached = None
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                cached = json.load(f)
        except (OSError, ValueError):
            cached = None

    try:
        latest = _get_latest_ddragon_version()
    except (requests.RequestException, ValueError, IndexError) as e:
        if cached and cached.get("data"):
            print(f"[catalog] WARN version check failed ({e}), using cache {cached.get('version')}", flush=True)
            return cached
        print(f"[catalog] WARN version check failed ({e}), using fallback {FALLBACK_VERSION}", flush=True)
        latest = FALLBACK_VERSION

    if not force_refresh and cached and cached.get("version") == latest and cached.get("data"):
        return cached

    try:
        raw = _download_champion_json(latest, locale)
    except (requests.RequestException, ValueError) as e:
        if cached and cached.get("data"):
            print(f"[catalog] WARN download of {latest} failed ({e}), using cache {cached.get('version')}", flush=True)
            return cached
        raise

    out = {
        "version": latest,
        "fetched_at": int(time.time()),
        "data": raw.get("data", {}),
    }

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(out, f, ensure_ascii=False, indent=2)
    except OSError as e:
        print(f"[catalog] WARN could not write cache {path}: {e}", flush=True)

    return out


class ChampionCatalog:
    def __init__(self, data: dict, version: str = ""):
        self.version = version
        idx = build_index(data)
        self.id_to_name: Dict[int, str] = idx["id_to_name"]
        self._by_name: Dict[str, int] = idx["name_to_id"]
        self._by_ddid: Dict[str, int] = idx["ddid_to_id"]

    @classmethod
    def load(cls, locale: str = "en_US", force_refresh: bool = False) -> "ChampionCatalog":
        raw = load_champion_data(locale=locale, force_refresh=force_refresh)
        cat = cls(raw.get("data") or {}, version=str(raw.get("version") or ""))
        print(f"[catalog] Data Dragon {cat.version}: {len(cat)} champions", flush=True)
        return cat

    def __len__(self) -> int:
        return len(self.id_to_name)

    def resolve(self, spec: Optional[str]) -> Optional[int]:
        """
        이름/ID/숫자 key -> championId
        우선순위: 표시 이름 -> canonical id ("MonkeyKing") -> 숫자 key ("266")
        """
        q = (spec or "").strip()
        if not q:
            return None
        nq = norm(q)
        if nq in self._by_name:
            return self._by_name[nq]
        if nq in self._by_ddid:
            return self._by_ddid[nq]
        if q.isdigit() and int(q) in self.id_to_name:
            return int(q)
        return None

    def name_for(self, champion_id: int, default: str = "") -> str:
        return self.id_to_name.get(int(champion_id), default or str(champion_id))
