"""
Reads from the event store with the app's failure policy applied:
a failed event listing degrades to an empty list plus an error toast,
a failed favorites listing degrades silently to an empty set.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from schemas import Event, Notification
from services.store import EventStore, StoreError

logger = logging.getLogger(__name__)

EVENTS_FAILED = Notification(
    title="Erro ao carregar eventos",
    description="Tente novamente em alguns instantes",
    variant="destructive",
)


@dataclass(frozen=True)
class EventsResult:
    events: List[Event] = field(default_factory=list)
    notification: Optional[Notification] = None

    @property
    def ok(self) -> bool:
        return self.notification is None


def fetch_events(store: EventStore) -> EventsResult:
    try:
        return EventsResult(events=store.list_events())
    except StoreError:
        logger.exception("loading events failed")
        return EventsResult(notification=EVENTS_FAILED)


def fetch_favorites(store: EventStore, user_id: Optional[str]) -> FrozenSet[str]:
    if not user_id:
        return frozenset()
    try:
        return frozenset(store.list_favorites(user_id))
    except StoreError as e:
        logger.warning("loading favorites failed user_id=%s: %s", user_id, e)
        return frozenset()
