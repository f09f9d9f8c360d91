from __future__ import annotations

import logging
import time as _t

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from routers import (
    auth as auth_router,
    events as events_router,
    favorites as favorites_router,
)
from services.store import EventStore, StoreError, get_store
from utils.logging_config import setup_logging

setup_logging(settings.log_level)

app = FastAPI(title="event-finder-api", version="1.0.0")

# bearer tokens travel in a header, so no cookies cross origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)

_log = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = _t.perf_counter()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        _log.info(
            "%s %s status=%s dur_ms=%s",
            request.method,
            request.url.path,
            getattr(response, "status_code", "-"),
            int((_t.perf_counter() - start) * 1000),
        )


app.include_router(events_router.router)
app.include_router(favorites_router.router)
app.include_router(auth_router.router)


@app.get("/")
def root():
    return {"ok": True, "service": "event-finder-api"}


@app.get("/ping")
def ping():
    return {"ok": True, "ts": _t.time()}


@app.get("/health")
def health(store: EventStore = Depends(get_store)):
    """Liveness plus a real round trip to the event store."""
    start = _t.perf_counter()
    try:
        n = len(store.list_events())
    except StoreError as e:
        _log.warning("health: store unreachable: %s", e)
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "backend": settings.store_backend,
                "store": "unreachable",
                "error": str(e),
            },
        )
    return {
        "status": "ok",
        "backend": settings.store_backend,
        "store": "reachable",
        "events": n,
        "latency_ms": int((_t.perf_counter() - start) * 1000),
    }
