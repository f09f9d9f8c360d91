from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from schemas import Notification
from services.store import EventStore, StoreError

logger = logging.getLogger(__name__)

ADDED = Notification(title="Adicionado aos favoritos")
REMOVED = Notification(title="Removido dos favoritos")
TOGGLE_FAILED = Notification(title="Erro ao atualizar favoritos", variant="destructive")


@dataclass(frozen=True)
class ToggleOutcome:
    ok: bool
    favorites: FrozenSet[str]
    notification: Notification
    added: Optional[bool] = None


def toggle_favorite(
    store: EventStore,
    user_id: str,
    event_id: str,
    favorites: Iterable[str],
) -> ToggleOutcome:
    """
    Flip the favorite state of `event_id` for `user_id`.

    Whether the pair is currently recorded is decided by the caller's
    `favorites` set. The returned set only reflects the change once the
    store call has succeeded; on failure it is the caller's set unchanged.
    """
    current = frozenset(favorites)
    is_favorite = event_id in current

    try:
        if is_favorite:
            store.remove_favorite(user_id, event_id)
        else:
            store.add_favorite(user_id, event_id)
    except StoreError:
        logger.exception(
            "favorite toggle failed user_id=%s event_id=%s", user_id, event_id
        )
        return ToggleOutcome(ok=False, favorites=current, notification=TOGGLE_FAILED)

    if is_favorite:
        return ToggleOutcome(
            ok=True, favorites=current - {event_id}, notification=REMOVED, added=False
        )
    return ToggleOutcome(
        ok=True, favorites=current | {event_id}, notification=ADDED, added=True
    )
