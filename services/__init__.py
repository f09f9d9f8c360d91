"""
Service package marker.

Intentionally empty to avoid heavy imports at package import time.
Import the concrete modules directly, e.g.:

    from services.filters import filter_events, has_active_filters
    from services.store import get_store, StoreError
    from services.favorites import toggle_favorite
"""
__all__: list[str] = []
