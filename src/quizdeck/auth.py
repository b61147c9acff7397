"""Single-admin authentication gate."""

from __future__ import annotations

import hmac
import logging
import os
import secrets
import threading
from collections.abc import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AuthError(Exception):
    pass


class UnauthorizedError(AuthError):
    """The identity is not the configured admin."""


class InvalidCredentialsError(AuthError):
    pass


class AdminUser(BaseModel):
    email: str


AuthListener = Callable[[AdminUser | None], None]


class AdminIdentityProvider:
    """Email/password check against the one configured admin identity."""

    def __init__(self, email: str | None = None, password: str | None = None) -> None:
        self.email = (email if email is not None else os.getenv("ADMIN_EMAIL", "")).strip()
        self.password = password if password is not None else os.getenv("ADMIN_PASSWORD", "")

    @property
    def configured(self) -> bool:
        return bool(self.email and self.password)

    def is_admin(self, email: str) -> bool:
        return bool(self.email) and hmac.compare_digest(
            email.strip().lower(), self.email.lower()
        )

    def verify(self, email: str, password: str) -> bool:
        return (
            self.configured
            and self.is_admin(email)
            and hmac.compare_digest(password, self.password)
        )


class AuthContext:
    """Tracks the signed-in admin and the bearer tokens issued to it.

    Listeners registered with :meth:`subscribe` are called with the current
    user right away and again on every login or logout.
    """

    def __init__(self, provider: AdminIdentityProvider) -> None:
        self._provider = provider
        self._tokens: dict[str, AdminUser] = {}
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()
        if not provider.configured:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set. Admin login is disabled.")

    @property
    def current_user(self) -> AdminUser | None:
        with self._lock:
            return next(iter(self._tokens.values()), None)

    @property
    def is_authorized(self) -> bool:
        user = self.current_user
        return user is not None and self._provider.is_admin(user.email)

    def login(self, email: str, password: str) -> str:
        """Sign the admin in and return a bearer token."""
        if not self._provider.is_admin(email):
            logger.warning("Rejected login for non-admin identity")
            raise UnauthorizedError("Unauthorized: Only admin can login")
        if not self._provider.verify(email, password):
            logger.warning("Rejected admin login: bad password")
            raise InvalidCredentialsError("Invalid email or password")

        token = secrets.token_urlsafe(32)
        user = AdminUser(email=self._provider.email)
        with self._lock:
            self._tokens[token] = user
        logger.info("Admin signed in")
        self._notify(user)
        return token

    def logout(self, token: str) -> None:
        with self._lock:
            removed = self._tokens.pop(token, None)
        if removed is not None:
            logger.info("Admin signed out")
            self._notify(self.current_user)

    def user_for_token(self, token: str) -> AdminUser | None:
        with self._lock:
            for issued, user in self._tokens.items():
                if hmac.compare_digest(issued, token):
                    return user
        return None

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        listener(self.current_user)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Revoke every token and drop all listeners."""
        with self._lock:
            had_tokens = bool(self._tokens)
            self._tokens.clear()
        if had_tokens:
            self._notify(None)
        with self._lock:
            self._listeners.clear()

    def _notify(self, user: AdminUser | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)
