from __future__ import annotations

from typing import Iterable, List

from schemas import ALL_CATEGORIES, DEFAULT_PRICE_RANGE, Event, FilterSpec
from utils.dates import parse_bound, parse_start


def default_filters() -> FilterSpec:
    return FilterSpec()


def with_search(spec: FilterSpec, text: str) -> FilterSpec:
    return spec.model_copy(update={"search": text or ""})


def has_active_filters(spec: FilterSpec) -> bool:
    low, high = spec.price_range
    return bool(
        spec.search
        or spec.category != ALL_CATEGORIES
        or spec.location
        or low > DEFAULT_PRICE_RANGE[0]
        or high < DEFAULT_PRICE_RANGE[1]
        or spec.date_from
        or spec.date_to
    )


# ---------- Criteria ----------


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def search_matches(event: Event, search: str) -> bool:
    if not search:
        return True
    q = search.lower()
    return (
        q in event.title.lower()
        or _contains(event.description, q)
        or _contains(event.organizer, q)
    )


def category_matches(event: Event, category: str) -> bool:
    return category == ALL_CATEGORIES or event.category == category


def location_matches(event: Event, location: str) -> bool:
    # no location on the event can never satisfy an active location filter
    if not location:
        return True
    return _contains(event.location, location.lower())


def price_matches(event: Event, price_range: tuple[float, float]) -> bool:
    low, high = price_range
    # a zero price counts as "no price", same as a missing one
    min_ok = not event.price_min or event.price_min >= low
    max_ok = not event.price_max or event.price_max <= high
    return min_ok and max_ok


def date_matches(event: Event, date_from: str, date_to: str) -> bool:
    start = parse_start(event.date_start)
    if start is None:
        return True
    lower = parse_bound(date_from)
    upper = parse_bound(date_to)
    if lower is not None and start < lower:
        return False
    if upper is not None and start > upper:
        return False
    return True


def matches(event: Event, spec: FilterSpec) -> bool:
    return (
        search_matches(event, spec.search)
        and category_matches(event, spec.category)
        and location_matches(event, spec.location)
        and price_matches(event, spec.price_range)
        and date_matches(event, spec.date_from, spec.date_to)
    )


def filter_events(events: Iterable[Event], spec: FilterSpec) -> List[Event]:
    """
    Stable filter: keeps the events satisfying every criterion of `spec`,
    in their original order.
    """
    return [e for e in events if matches(e, spec)]
