from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional, Protocol

from supabase import Client

from config import settings
from schemas import User
from services.store import get_supabase_client, request_client_options

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """The identity provider rejected the request."""


@dataclass(frozen=True)
class AuthSession:
    """
    What the page knows about the signed-in user. `loading` is true while the
    session is still being resolved; event and favorite fetches wait for it.
    """

    user: Optional[User] = None
    access_token: Optional[str] = None
    loading: bool = False

    @property
    def can_fetch(self) -> bool:
        return not self.loading and self.user is not None

    @property
    def needs_login(self) -> bool:
        return not self.loading and self.user is None


SIGNED_OUT = AuthSession()


class AuthProvider(Protocol):
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_up(self, email: str, password: str) -> AuthSession: ...

    def sign_out(self, access_token: Optional[str] = None) -> None: ...

    def get_user(self, access_token: str) -> AuthSession: ...


class SupabaseAuth:
    """
    Supabase identity provider for the API process.

    The shared client is only used for stateless calls (`get_user(jwt)`,
    admin sign-out). Sign-in and sign-up run on a fresh client from
    `client_factory`, so no user's session is ever stored on the shared one.
    Admin sign-out needs the service-role key.
    """

    def __init__(
        self, client: Client, client_factory: Optional[Callable[[], Client]] = None
    ) -> None:
        self._client = client
        self._client_factory = client_factory or (lambda: client)

    def _session_from(self, res, email: str) -> AuthSession:
        user = getattr(res, "user", None)
        if user is None:
            raise AuthError(f"no user returned for {email}")
        session = getattr(res, "session", None)
        return AuthSession(
            user=User(id=str(user.id), email=getattr(user, "email", None) or email),
            access_token=getattr(session, "access_token", None),
        )

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            res = self._client_factory().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(str(e)) from e
        return self._session_from(res, email)

    def sign_up(self, email: str, password: str) -> AuthSession:
        try:
            res = self._client_factory().auth.sign_up(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(str(e)) from e
        return self._session_from(res, email)

    def sign_out(self, access_token: Optional[str] = None) -> None:
        if not access_token:
            raise AuthError("no session to sign out")
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as e:
            raise AuthError(str(e)) from e

    def get_user(self, access_token: str) -> AuthSession:
        try:
            res = self._client.auth.get_user(access_token)
        except Exception as e:
            raise AuthError(str(e)) from e
        user = getattr(res, "user", None)
        if user is None:
            raise AuthError("token does not belong to a user")
        return AuthSession(
            user=User(id=str(user.id), email=getattr(user, "email", None)),
            access_token=access_token,
        )


class DemoAuth:
    """
    Mock identity provider for the in-memory backend: any non-empty
    credentials sign in, with a user id derived from the email. Issued
    tokens are random and live until sign-out or process exit.
    """

    def __init__(self) -> None:
        self._tokens: Dict[str, User] = {}

    def _session(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthError("email and password are required")
        uid = str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}"))
        user = User(id=uid, email=email)
        token = f"demo-{secrets.token_urlsafe(24)}"
        self._tokens[token] = user
        return AuthSession(user=user, access_token=token)

    def sign_in(self, email: str, password: str) -> AuthSession:
        return self._session(email, password)

    def sign_up(self, email: str, password: str) -> AuthSession:
        return self._session(email, password)

    def sign_out(self, access_token: Optional[str] = None) -> None:
        user = self._tokens.pop(access_token or "", None)
        if user is None:
            raise AuthError("unknown session")
        logger.debug("demo sign-out user=%s", user.id)

    def get_user(self, access_token: str) -> AuthSession:
        user = self._tokens.get(access_token)
        if user is None:
            raise AuthError("unknown session")
        return AuthSession(user=user, access_token=access_token)


@lru_cache(maxsize=1)
def get_auth() -> AuthProvider:
    if (settings.store_backend or "").strip().lower() == "supabase":
        return SupabaseAuth(
            get_supabase_client(),
            client_factory=lambda: get_supabase_client(request_client_options()),
        )
    return DemoAuth()
