from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from services.auth import AuthError, AuthProvider, AuthSession, get_auth
from services.store import EventStore, StoreError, get_store

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class Credentials(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


def _session_payload(session: AuthSession) -> Dict[str, Any]:
    return {
        "ok": True,
        "user": session.user.model_dump() if session.user else None,
        "access_token": session.access_token,
    }


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"}
    )


# ---------- Dependencies ----------


def current_session(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    auth: AuthProvider = Depends(get_auth),
) -> AuthSession:
    """The caller's session from `Authorization: Bearer <token>`, or 401."""
    if creds is None or not creds.credentials:
        raise _unauthorized("not authenticated")
    try:
        session = auth.get_user(creds.credentials)
    except AuthError as e:
        logger.info("bearer token rejected: %s", e)
        raise _unauthorized("invalid or expired session")
    if session.user is None:
        raise _unauthorized("invalid or expired session")
    return session


def user_store(
    session: AuthSession = Depends(current_session),
    store: EventStore = Depends(get_store),
) -> EventStore:
    """The store, scoped to the caller's token where the backend supports it."""
    try:
        return store.for_user(session.access_token or "")
    except StoreError as e:
        logger.exception("could not scope store to user=%s", session.user.id)
        raise HTTPException(status_code=503, detail=str(e))


# ---------- Routes ----------


@router.post("/login")
def login(req: Credentials, auth: AuthProvider = Depends(get_auth)) -> Dict[str, Any]:
    try:
        session = auth.sign_in(req.email, req.password)
    except AuthError as e:
        logger.info("login rejected email=%s: %s", req.email, e)
        raise HTTPException(status_code=401, detail="invalid credentials")
    return _session_payload(session)


@router.post("/signup")
def signup(req: Credentials, auth: AuthProvider = Depends(get_auth)) -> Dict[str, Any]:
    try:
        session = auth.sign_up(req.email, req.password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=f"signup failed: {e}")
    return _session_payload(session)


@router.get("/me")
def me(session: AuthSession = Depends(current_session)) -> Dict[str, Any]:
    return _session_payload(session)


@router.post("/logout")
def logout(
    session: AuthSession = Depends(current_session),
    auth: AuthProvider = Depends(get_auth),
) -> Dict[str, Any]:
    try:
        auth.sign_out(session.access_token)
    except AuthError as e:
        logger.warning("sign-out failed user=%s: %s", session.user.id, e)
        return {"ok": False, "error": str(e)}
    return {"ok": True}
