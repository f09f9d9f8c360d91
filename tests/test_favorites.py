from __future__ import annotations

from typing import List, Set

from services.discovery import EVENTS_FAILED, fetch_events, fetch_favorites
from services.favorites import ADDED, REMOVED, TOGGLE_FAILED, toggle_favorite
from services.store import InMemoryEventStore, StoreError


class FlakyStore(InMemoryEventStore):
    """In-memory store whose calls can be told to fail."""

    def __init__(self, *args, fail: Set[str] = frozenset(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail = set(fail)
        self.calls: List[str] = []

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise StoreError(f"{name} unavailable")

    def list_events(self):
        self._maybe_fail("list_events")
        return super().list_events()

    def list_favorites(self, user_id):
        self._maybe_fail("list_favorites")
        return super().list_favorites(user_id)

    def add_favorite(self, user_id, event_id):
        self._maybe_fail("add_favorite")
        super().add_favorite(user_id, event_id)

    def remove_favorite(self, user_id, event_id):
        self._maybe_fail("remove_favorite")
        super().remove_favorite(user_id, event_id)


# ---------- Toggle ----------


def test_toggle_adds_when_absent():
    store = FlakyStore([])
    out = toggle_favorite(store, "u1", "x", [])
    assert out.ok and out.added is True
    assert out.favorites == {"x"}
    assert out.notification == ADDED
    assert store.list_favorites("u1") == {"x"}


def test_toggle_removes_when_present():
    store = FlakyStore([], favorites=[("u1", "x")])
    out = toggle_favorite(store, "u1", "x", {"x", "y"})
    assert out.ok and out.added is False
    assert out.favorites == {"y"}
    assert out.notification == REMOVED
    assert store.calls == ["remove_favorite"]


def test_failed_removal_keeps_local_set_and_notifies():
    store = FlakyStore([], favorites=[("u1", "x")], fail={"remove_favorite"})
    local = frozenset({"x"})
    out = toggle_favorite(store, "u1", "x", local)
    assert not out.ok
    assert "x" in out.favorites
    assert out.favorites == local
    assert out.notification == TOGGLE_FAILED
    assert out.notification.variant == "destructive"


def test_failed_insert_keeps_local_set():
    store = FlakyStore([], fail={"add_favorite"})
    out = toggle_favorite(store, "u1", "x", ["y"])
    assert not out.ok
    assert out.favorites == {"y"}
    assert store.list_favorites("u1") == set()


def test_decision_follows_callers_set_not_store():
    # caller believes x is not a favorite, so an insert is attempted
    store = FlakyStore([], favorites=[("u1", "x")])
    out = toggle_favorite(store, "u1", "x", [])
    assert store.calls == ["add_favorite"]
    assert not out.ok


# ---------- Fetch policy ----------


def test_fetch_events_failure_gives_empty_list_and_toast():
    res = fetch_events(FlakyStore(fail={"list_events"}))
    assert res.events == []
    assert res.notification == EVENTS_FAILED
    assert not res.ok


def test_fetch_events_success():
    res = fetch_events(FlakyStore([{"id": "1", "title": "A"}]))
    assert res.ok
    assert [e.id for e in res.events] == ["1"]


def test_fetch_favorites_failure_is_silent_empty_set():
    store = FlakyStore([], favorites=[("u1", "x")], fail={"list_favorites"})
    assert fetch_favorites(store, "u1") == frozenset()


def test_fetch_favorites_without_user_does_not_touch_store():
    store = FlakyStore([])
    assert fetch_favorites(store, None) == frozenset()
    assert store.calls == []
