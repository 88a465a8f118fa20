# routers/holdings_routes.py
from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import SessionLocal, get_db
from models.holding import HoldingOut, to_dto
from models.user import User
from schemas.holding import HoldingCreate, HoldingRecorded, HoldingUpdate
from services.holding_events import broker
from services.holding_service import delete_holding, list_holdings, record_holding, update_holding
from services.supabase_auth import get_current_db_user, get_optional_db_user

router = APIRouter()

HEARTBEAT_SEC = 25.0


def _sse_pack(event: str, data: Any) -> str:
    payload = data if isinstance(data, str) else json.dumps(data, separators=(",", ":"), default=str)
    lines = payload.splitlines() or [""]
    out = f"event: {event}\n" if event else ""
    for line in lines:
        out += f"data: {line}\n"
    out += "\n"
    return out


def _snapshot(user_id: int) -> List[Dict[str, Any]]:
    with SessionLocal() as db:
        user = db.get(User, user_id)
        return [to_dto(h).model_dump(mode="json") for h in list_holdings(db, user)]


@router.post("/holdings", response_model=HoldingRecorded, status_code=status.HTTP_201_CREATED)
def save_holding(
    holding: HoldingCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    return HoldingRecorded(id=record_holding(db, user, holding))


@router.get("/holdings", response_model=List[HoldingOut])
def get_holdings(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    return [to_dto(h) for h in list_holdings(db, user)]


@router.patch("/holdings/{holding_id}", response_model=HoldingOut)
def patch_holding(
    holding_id: int,
    patch: HoldingUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_db_user),
):
    return to_dto(update_holding(db, user, holding_id, patch))


@router.delete("/holdings/{holding_id}")
def remove_holding(
    holding_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_db_user),
):
    delete_holding(db, user, holding_id)
    return {"detail": "Deleted"}


@router.get("/holdings/stream")
async def stream_holdings(
    request: Request,
    user: User = Depends(get_current_db_user),
):
    user_id = user.id

    async def event_stream() -> AsyncGenerator[str, None]:
        with broker.subscribe(user_id) as queue:
            items = await asyncio.to_thread(_snapshot, user_id)
            yield _sse_pack("holdings", {"items": items})
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SEC)
                except asyncio.TimeoutError:
                    yield _sse_pack("heartbeat", {})
                    continue
                items = await asyncio.to_thread(_snapshot, user_id)
                yield _sse_pack("holdings", {"change": event, "items": items})

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)
