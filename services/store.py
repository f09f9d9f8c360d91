# services/store.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, ClientOptions, create_client

from config import settings
from schemas import Event
from utils.dates import parse_start

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Transport or query failure talking to the event/favorite store."""


class EventStore(Protocol):
    def list_events(self) -> List[Event]: ...

    def list_favorites(self, user_id: str) -> Set[str]: ...

    def add_favorite(self, user_id: str, event_id: str) -> None: ...

    def remove_favorite(self, user_id: str, event_id: str) -> None: ...

    def for_user(self, access_token: str) -> "EventStore": ...


def events_from_rows(rows: Iterable[Dict[str, Any]]) -> List[Event]:
    """
    Validate store rows into Event models. A bad row is logged and skipped
    so one broken listing never hides the rest.
    """
    out: List[Event] = []
    for idx, row in enumerate(rows):
        try:
            out.append(Event.model_validate(row))
        except ValidationError as ve:
            logger.warning(
                "event row#%s (id=%r) skipped: %s", idx, row.get("id"), ve
            )
    return out


# ---------- Supabase ----------


def get_supabase_client(options: Optional[ClientOptions] = None) -> Client:
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError(
            "Missing SUPABASE env vars. Need SUPABASE_URL and SUPABASE_KEY "
            "(or SUPABASE_ANON_KEY / SUPABASE_SERVICE_ROLE_KEY)."
        )
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


def request_client_options() -> ClientOptions:
    # short-lived clients: no session storage, no refresh timer
    return ClientOptions(persist_session=False, auto_refresh_token=False)


class SupabaseEventStore:
    """
    Table access through the Supabase client. The shared instance only
    knows the project key; `for_user` hands out a store whose PostgREST
    calls run under the caller's JWT, so row-level security applies.
    """

    def __init__(
        self,
        client: Client,
        *,
        events_table: str = "events",
        favorites_table: str = "favorites",
        client_factory: Optional[Callable[[], Client]] = None,
    ) -> None:
        self._client = client
        self._events_table = events_table
        self._favorites_table = favorites_table
        self._client_factory = client_factory

    def for_user(self, access_token: str) -> "SupabaseEventStore":
        if not access_token:
            raise StoreError("an access token is required for user-scoped calls")
        if self._client_factory is None:
            raise StoreError("no client factory configured for user-scoped calls")
        client = self._client_factory()
        client.postgrest.auth(access_token)
        return SupabaseEventStore(
            client,
            events_table=self._events_table,
            favorites_table=self._favorites_table,
        )

    def list_events(self) -> List[Event]:
        try:
            res = (
                self._client.table(self._events_table)
                .select("*")
                .order("date_start", desc=False)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"list_events failed: {e}") from e
        return events_from_rows(res.data or [])

    def list_favorites(self, user_id: str) -> Set[str]:
        try:
            res = (
                self._client.table(self._favorites_table)
                .select("event_id")
                .eq("user_id", user_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"list_favorites failed: {e}") from e
        return {str(r["event_id"]) for r in (res.data or []) if r.get("event_id")}

    def add_favorite(self, user_id: str, event_id: str) -> None:
        try:
            self._client.table(self._favorites_table).insert(
                {"user_id": user_id, "event_id": event_id}
            ).execute()
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"add_favorite failed: {e}") from e

    def remove_favorite(self, user_id: str, event_id: str) -> None:
        try:
            (
                self._client.table(self._favorites_table)
                .delete()
                .eq("user_id", user_id)
                .eq("event_id", event_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise StoreError(f"remove_favorite failed: {e}") from e


# ---------- In-memory (local development) ----------

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _start_key(e: Event) -> datetime:
    # events without a start date sort last, like NULLs under ORDER BY ... ASC
    return parse_start(e.date_start) or _FAR_FUTURE


class InMemoryEventStore:
    """
    Same contract as the Supabase store, backed by a list and a set of
    (user_id, event_id) pairs. Serves the demo data when no hosted backend
    is configured.
    """

    def __init__(
        self,
        events: Optional[Iterable[Dict[str, Any]]] = None,
        favorites: Optional[Iterable[tuple[str, str]]] = None,
    ) -> None:
        rows = list(DEMO_EVENTS if events is None else events)
        self._events = events_from_rows(rows)
        self._favorites: Set[tuple[str, str]] = set(favorites or ())

    def list_events(self) -> List[Event]:
        return sorted(self._events, key=_start_key)

    def list_favorites(self, user_id: str) -> Set[str]:
        return {eid for uid, eid in self._favorites if uid == user_id}

    def add_favorite(self, user_id: str, event_id: str) -> None:
        if (user_id, event_id) in self._favorites:
            raise StoreError(
                f"favorite ({user_id}, {event_id}) already exists"
            )
        self._favorites.add((user_id, event_id))

    def remove_favorite(self, user_id: str, event_id: str) -> None:
        self._favorites.discard((user_id, event_id))

    def for_user(self, access_token: str) -> "InMemoryEventStore":
        # one process, one data set; scoping is by the user_id argument
        return self


DEMO_EVENTS: List[Dict[str, Any]] = [
    {
        "id": "evt-jazz-night",
        "title": "Jazz Night no Bourbon Street",
        "description": "Quarteto de jazz com convidados especiais.",
        "date_start": "2026-11-06T21:00:00-03:00",
        "location": "Moema, São Paulo",
        "price_min": 60,
        "price_max": 120,
        "category": "Música",
        "organizer": "Bourbon Street Music Club",
        "image_url": "https://images.example.com/jazz-night.jpg",
    },
    {
        "id": "evt-virada",
        "title": "Virada Cultural",
        "description": "24 horas de shows, teatro e dança pela cidade.",
        "date_start": "2026-11-14T18:00:00-03:00",
        "location": "Centro, São Paulo",
        "price_min": 0,
        "category": "Festival",
        "organizer": "Prefeitura de São Paulo",
        "is_sponsored": True,
    },
    {
        "id": "evt-hamlet",
        "title": "Hamlet",
        "description": "Montagem contemporânea do clássico de Shakespeare.",
        "date_start": "2026-11-20T20:00:00-03:00",
        "location": "Bela Vista, São Paulo",
        "price_min": 40,
        "price_max": 90,
        "category": "Teatro",
        "organizer": "Teatro Oficina",
    },
    {
        "id": "evt-masp",
        "title": "Exposição Acervo em Transformação",
        "description": "Os cavaletes de cristal de Lina Bo Bardi.",
        "date_start": "2026-12-01T10:00:00-03:00",
        "location": "Avenida Paulista, São Paulo",
        "price_min": 35,
        "price_max": 35,
        "category": "Exposição",
        "organizer": "MASP",
    },
    {
        "id": "evt-feira-gastronomica",
        "title": "Feira Gastronômica da Liberdade",
        "date_start": "2026-12-05T11:00:00-03:00",
        "location": "Liberdade, São Paulo",
        "category": "Gastronomia",
    },
    {
        "id": "evt-oficina-escrita",
        "title": "Oficina de Escrita Criativa",
        "description": "Workshop para iniciantes.",
        "category": "Workshop",
        "organizer": "Casa das Rosas",
        "price_min": 150,
        "price_max": 150,
    },
]


@lru_cache(maxsize=1)
def get_store() -> EventStore:
    backend = (settings.store_backend or "memory").strip().lower()
    if backend == "supabase":
        return SupabaseEventStore(
            get_supabase_client(),
            events_table=settings.events_table,
            favorites_table=settings.favorites_table,
            client_factory=lambda: get_supabase_client(request_client_options()),
        )
    if backend != "memory":
        raise RuntimeError(f"unknown STORE_BACKEND {settings.store_backend!r}")
    logger.info("using in-memory event store with demo data")
    return InMemoryEventStore()
