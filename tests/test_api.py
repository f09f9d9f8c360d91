from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import app
from services.auth import DemoAuth, get_auth
from services.store import InMemoryEventStore, StoreError, get_store

ROWS = [
    {"id": "1", "title": "Jazz Night", "category": "Música", "location": "Centro",
     "date_start": "2026-11-06T21:00:00-03:00", "price_min": 0},
    {"id": "2", "title": "Hamlet", "category": "Teatro", "location": "Bela Vista",
     "date_start": "2026-11-20T20:00:00-03:00", "price_min": 40, "price_max": 90},
    {"id": "3", "title": "Sem data nem local"},
]


class BrokenStore(InMemoryEventStore):
    def list_events(self):
        raise StoreError("down")

    def list_favorites(self, user_id):
        raise StoreError("down")

    def remove_favorite(self, user_id, event_id):
        raise StoreError("down")


def _use(store, auth):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_auth] = lambda: auth


def _login(http: TestClient, email: str = "ana@example.com") -> dict:
    body = http.post("/auth/login", json={"email": email, "password": "x"}).json()
    return {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def store():
    return InMemoryEventStore(ROWS)


@pytest.fixture
def http(store):
    _use(store, DemoAuth())
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def ana(http):
    return _login(http, "ana@example.com")


def test_root_and_health(http):
    assert http.get("/").json()["ok"] is True
    body = http.get("/health").json()
    assert body["status"] == "ok"
    assert body["store"] == "reachable"
    assert body["events"] == 3


def test_health_reports_unreachable_store():
    _use(BrokenStore([]), DemoAuth())
    try:
        r = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503
    assert r.json()["status"] == "degraded"
    assert r.json()["store"] == "unreachable"


def test_list_all_events_sorted(http, ana):
    body = http.get("/events", headers=ana).json()
    assert body["ok"] is True
    assert body["count"] == body["total"] == 3
    assert [e["id"] for e in body["items"]] == ["1", "2", "3"]
    assert body["has_active_filters"] is False
    assert body["notification"] is None


def test_list_events_with_filters(http, ana):
    body = http.get("/events", params={"search": "HAM", "price_max": 100}, headers=ana).json()
    assert [e["id"] for e in body["items"]] == ["2"]
    assert body["total"] == 3
    assert body["has_active_filters"] is True


def test_location_filter_excludes_events_without_location(http, ana):
    body = http.get("/events", params={"location": "centro"}, headers=ana).json()
    assert [e["id"] for e in body["items"]] == ["1"]


def test_invalid_filters_rejected(http, ana):
    assert http.get("/events", params={"price_min": 100, "price_max": 10}, headers=ana).status_code == 422
    assert http.get("/events", params={"date_from": "ontem"}, headers=ana).status_code == 422


def test_categories_are_public(http):
    body = http.get("/events/categories").json()
    assert body["categories"][0] == "Todos"
    assert body["price_ceiling"] == 500


def test_store_failure_degrades_to_empty_list_with_notification():
    auth = DemoAuth()
    _use(BrokenStore([]), auth)
    try:
        http = TestClient(app)
        body = http.get("/events", headers=_login(http)).json()
    finally:
        app.dependency_overrides.clear()
    assert body["ok"] is False
    assert body["items"] == []
    assert body["notification"]["title"] == "Erro ao carregar eventos"
    assert body["notification"]["variant"] == "destructive"


def test_favorites_toggle_round_trip(http, ana):
    r = http.post("/favorites/toggle", json={"event_id": "2", "favorites": []}, headers=ana)
    body = r.json()
    assert body["ok"] is True and body["added"] is True
    assert body["favorites"] == ["2"]
    assert body["notification"]["title"] == "Adicionado aos favoritos"
    assert http.get("/favorites", headers=ana).json()["items"] == ["2"]

    body = http.post(
        "/favorites/toggle", json={"event_id": "2", "favorites": ["2"]}, headers=ana
    ).json()
    assert body["ok"] is True and body["added"] is False
    assert body["favorites"] == []
    assert http.get("/favorites", headers=ana).json()["items"] == []


def test_failed_toggle_returns_unchanged_favorites():
    _use(BrokenStore([]), DemoAuth())
    try:
        http = TestClient(app)
        headers = _login(http)
        body = http.post(
            "/favorites/toggle", json={"event_id": "x", "favorites": ["x"]}, headers=headers
        ).json()
        favs = http.get("/favorites", headers=headers).json()
    finally:
        app.dependency_overrides.clear()
    assert body["ok"] is False
    assert body["favorites"] == ["x"]
    assert body["notification"]["title"] == "Erro ao atualizar favoritos"
    assert favs == {"ok": True, "items": []}


# ---------- identity ----------


@pytest.mark.parametrize(
    "method, path, payload",
    [
        ("GET", "/events", None),
        ("GET", "/favorites", None),
        ("POST", "/favorites/toggle", {"event_id": "1", "favorites": []}),
        ("POST", "/auth/logout", None),
        ("GET", "/auth/me", None),
    ],
)
def test_requests_without_token_are_rejected(http, store, method, path, payload):
    r = http.request(method, path, json=payload)
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"
    assert store.list_favorites("anyone") == set()


def test_unknown_or_malformed_token_is_rejected(http):
    assert http.get("/favorites", headers={"Authorization": "Bearer forged"}).status_code == 401
    assert http.get("/favorites", headers={"Authorization": "Basic abc"}).status_code == 401


def test_user_cannot_read_or_change_another_users_favorites(http, store, ana):
    bia = _login(http, "bia@example.com")
    bia_id = http.get("/auth/me", headers=bia).json()["user"]["id"]
    http.post("/favorites/toggle", json={"event_id": "1", "favorites": []}, headers=bia)

    # Ana sees only her own (empty) set and cannot address Bia's by id
    assert http.get("/favorites", headers=ana).json()["items"] == []
    assert http.get(f"/favorites/{bia_id}", headers=ana).status_code in (404, 405)

    # a toggle carrying Bia's id is applied to Ana, never to Bia
    body = http.post(
        "/favorites/toggle",
        json={"user_id": bia_id, "event_id": "1", "favorites": ["1"]},
        headers=ana,
    ).json()
    assert body["added"] is False
    assert store.list_favorites(bia_id) == {"1"}
    assert http.get("/favorites", headers=bia).json()["items"] == ["1"]


def test_demo_login_and_logout(http):
    body = http.post("/auth/login", json={"email": "Ana@Example.com", "password": "x"}).json()
    assert body["ok"] is True
    assert body["user"]["email"] == "ana@example.com"
    again = http.post("/auth/login", json={"email": "ana@example.com", "password": "y"}).json()
    assert again["user"]["id"] == body["user"]["id"]
    assert again["access_token"] != body["access_token"]

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert http.post("/auth/logout", headers=headers).json() == {"ok": True}
    # the signed-out token is dead; the other session is untouched
    assert http.get("/favorites", headers=headers).status_code == 401
    other = {"Authorization": f"Bearer {again['access_token']}"}
    assert http.get("/favorites", headers=other).status_code == 200


def test_login_rejected(http):
    r = http.post("/auth/login", json={"email": "ana@example.com", "password": ""})
    assert r.status_code == 422
