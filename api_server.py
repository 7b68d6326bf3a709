# api_server.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from env_loader import current_profile

app = FastAPI(title="AutoPick API", version="0.3.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def bind_engine(engine: Any) -> FastAPI:
    """러너가 엔진을 붙여준다. 요청 핸들러는 app.state.engine 으로 접근."""
    app.state.engine = engine
    return app


def _engine(request: Request) -> Any:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="engine not running")
    return engine


# -------------------------
# Schemas
# -------------------------
class SlotIntentIn(BaseModel):
    pick_champion: Optional[str] = Field(default=None, max_length=64)
    ban_champion: Optional[str] = Field(default=None, max_length=64)
    auto_lock: bool = Field(default=True)
    enabled: bool = Field(default=True)


class SlotOut(BaseModel):
    slot_id: str
    pick_champion: Optional[str] = None
    ban_champion: Optional[str] = None
    auto_lock: bool = True
    enabled: bool = True
    status: Dict[str, str] = Field(default_factory=dict)


class SlotsResponse(BaseModel):
    ok: bool
    slots: List[SlotOut]


# -------------------------
# Endpoints
# -------------------------
@app.get("/health")
def health(request: Request):
    engine = getattr(request.app.state, "engine", None)
    return {
        "ok": engine is not None,
        "profile": current_profile(),
        "connected": bool(getattr(engine, "connected", False)),
        "phase": getattr(engine, "last_phase", None),
    }


@app.get("/slots", response_model=SlotsResponse)
def list_slots(request: Request):
    engine = _engine(request)
    statuses = engine.statuses()
    out = []
    # store는 엔진 스레드 소유: 여기서는 읽기만
    for slot in engine.store:
        st = statuses.get(slot.slot_id)
        out.append(SlotOut(slot_id=slot.slot_id, status=st.to_dict() if st else {}, **slot.intent()))
    return {"ok": True, "slots": out}


@app.put("/slots/{slot_id}")
def put_slot(slot_id: str, body: SlotIntentIn, request: Request):
    engine = _engine(request)
    sid = (slot_id or "").strip()
    if not sid:
        raise HTTPException(status_code=400, detail="slot_id is empty")
    if not body.pick_champion and not body.ban_champion:
        raise HTTPException(status_code=400, detail="pick_champion or ban_champion is required")
    engine.submit("upsert", sid, body.model_dump())
    return {"ok": True, "queued": "upsert", "slot_id": sid}


@app.post("/slots/{slot_id}/toggle")
def toggle_slot(slot_id: str, request: Request):
    engine = _engine(request)
    # PUT 직후일 수 있음: store 반영 전이라도 큐에 넣고, 모르는 id는 엔진이 무시
    engine.submit("toggle", slot_id)
    return {"ok": True, "queued": "toggle", "slot_id": slot_id}


@app.delete("/slots/{slot_id}")
def delete_slot(slot_id: str, request: Request):
    engine = _engine(request)
    engine.submit("remove", slot_id)
    return {"ok": True, "queued": "remove", "slot_id": slot_id}
