"""
Page state for the events screen.

The state is an immutable snapshot; every change goes through `reduce`,
which returns a new snapshot and never touches the old one. The rendering
layer only reads snapshots and dispatches actions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from schemas import Event, FilterSpec, Notification
from services.filters import default_filters, filter_events, with_search


@dataclass(frozen=True)
class AppState:
    events: Tuple[Event, ...] = ()
    favorites: FrozenSet[str] = frozenset()
    filters: FilterSpec = field(default_factory=default_filters)
    search_term: str = ""
    filters_visible: bool = False
    loading: bool = True
    notifications: Tuple[Notification, ...] = ()


# ---------- Actions ----------


@dataclass(frozen=True)
class EventsLoaded:
    events: Tuple[Event, ...]


@dataclass(frozen=True)
class EventsFailed:
    notification: Optional[Notification] = None


@dataclass(frozen=True)
class FavoritesLoaded:
    favorites: FrozenSet[str]


@dataclass(frozen=True)
class FavoritesReplaced:
    """Favorite set after a confirmed toggle."""

    favorites: FrozenSet[str]


@dataclass(frozen=True)
class FiltersChanged:
    filters: FilterSpec


@dataclass(frozen=True)
class SearchChanged:
    text: str


@dataclass(frozen=True)
class FiltersCleared:
    pass


@dataclass(frozen=True)
class FiltersPanelToggled:
    pass


@dataclass(frozen=True)
class Notified:
    notification: Notification


@dataclass(frozen=True)
class NotificationsDrained:
    pass


Action = Union[
    EventsLoaded,
    EventsFailed,
    FavoritesLoaded,
    FavoritesReplaced,
    FiltersChanged,
    SearchChanged,
    FiltersCleared,
    FiltersPanelToggled,
    Notified,
    NotificationsDrained,
]


def _notify(state: AppState, n: Optional[Notification]) -> Tuple[Notification, ...]:
    return state.notifications + (n,) if n else state.notifications


def reduce(state: AppState, action: Action) -> AppState:
    if isinstance(action, EventsLoaded):
        return replace(state, events=tuple(action.events), loading=False)
    if isinstance(action, EventsFailed):
        return replace(
            state,
            events=(),
            loading=False,
            notifications=_notify(state, action.notification),
        )
    if isinstance(action, (FavoritesLoaded, FavoritesReplaced)):
        return replace(state, favorites=frozenset(action.favorites))
    if isinstance(action, FiltersChanged):
        # the header search box mirrors the panel's search field
        return replace(state, filters=action.filters, search_term=action.filters.search)
    if isinstance(action, SearchChanged):
        return replace(
            state,
            search_term=action.text,
            filters=with_search(state.filters, action.text),
        )
    if isinstance(action, FiltersCleared):
        return replace(state, filters=default_filters(), search_term="")
    if isinstance(action, FiltersPanelToggled):
        return replace(state, filters_visible=not state.filters_visible)
    if isinstance(action, Notified):
        return replace(state, notifications=_notify(state, action.notification))
    if isinstance(action, NotificationsDrained):
        return replace(state, notifications=())
    raise TypeError(f"unknown action {action!r}")


def reduce_all(state: AppState, actions: Iterable[Action]) -> AppState:
    for action in actions:
        state = reduce(state, action)
    return state


def visible_events(state: AppState) -> List[Event]:
    return filter_events(state.events, state.filters)


def is_favorite(state: AppState, event_id: str) -> bool:
    return event_id in state.favorites
