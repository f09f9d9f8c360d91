from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from routers.auth import current_session, user_store
from schemas import Notification
from services.auth import AuthSession
from services.discovery import fetch_favorites
from services.favorites import toggle_favorite
from services.store import EventStore

router = APIRouter(prefix="/favorites", tags=["favorites"])


class ToggleRequest(BaseModel):
    event_id: str = Field(..., min_length=1)
    favorites: List[str] = Field(
        default_factory=list, description="Caller's current favorite event ids"
    )


class ToggleResponse(BaseModel):
    ok: bool
    favorites: List[str]
    added: Optional[bool] = None
    notification: Notification


# The user is always the token's owner; ids in the request are never trusted.


@router.get("")
def list_favorites(
    session: AuthSession = Depends(current_session),
    store: EventStore = Depends(user_store),
) -> Dict[str, Any]:
    items = sorted(fetch_favorites(store, session.user.id))
    return {"ok": True, "items": items}


@router.post("/toggle", response_model=ToggleResponse)
def toggle(
    req: ToggleRequest,
    session: AuthSession = Depends(current_session),
    store: EventStore = Depends(user_store),
) -> ToggleResponse:
    outcome = toggle_favorite(store, session.user.id, req.event_id, req.favorites)
    return ToggleResponse(
        ok=outcome.ok,
        favorites=sorted(outcome.favorites),
        added=outcome.added,
        notification=outcome.notification,
    )
