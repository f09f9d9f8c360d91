from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from schemas import CATEGORIES, DEFAULT_PRICE_RANGE, PRICE_STEP, Event, FilterSpec, Notification
from services.discovery import fetch_events
from services.filters import filter_events, has_active_filters
from routers.auth import user_store
from services.store import EventStore

router = APIRouter(prefix="/events", tags=["events"])

# ---------- Responses ----------


class CategoriesResponse(BaseModel):
    categories: List[str]
    price_ceiling: float
    price_step: float


class EventsResponse(BaseModel):
    ok: bool = True
    count: int
    total: int = Field(..., description="Events before filtering")
    items: List[Event]
    filters: FilterSpec
    has_active_filters: bool = False
    notification: Optional[Notification] = None


# ---------- Routes ----------


@router.get("/categories", response_model=CategoriesResponse)
def get_categories() -> CategoriesResponse:
    return CategoriesResponse(
        categories=list(CATEGORIES),
        price_ceiling=DEFAULT_PRICE_RANGE[1],
        price_step=PRICE_STEP,
    )


@router.get("", response_model=EventsResponse)
def list_events(
    *,
    search: str = "",
    category: Optional[str] = None,
    location: str = "",
    price_min: float = Query(DEFAULT_PRICE_RANGE[0], ge=0),
    price_max: float = Query(DEFAULT_PRICE_RANGE[1], ge=0),
    date_from: str = Query("", description="YYYY-MM-DD"),
    date_to: str = Query("", description="YYYY-MM-DD"),
    store: EventStore = Depends(user_store),
) -> EventsResponse:
    """
    Events sorted by start date, for a signed-in caller. With no filter
    params every event is returned; otherwise only the ones matching all
    given criteria.
    A store failure degrades to an empty list carrying the error toast.
    """
    try:
        spec = FilterSpec(
            search=search,
            category=category,
            location=location,
            price_range=(price_min, price_max),
            date_from=date_from,
            date_to=date_to,
        )
    except ValidationError as ve:
        raise HTTPException(status_code=422, detail=[e["msg"] for e in ve.errors()])

    result = fetch_events(store)
    items = filter_events(result.events, spec)
    return EventsResponse(
        ok=result.ok,
        count=len(items),
        total=len(result.events),
        items=items,
        filters=spec,
        has_active_filters=has_active_filters(spec),
        notification=result.notification,
    )
