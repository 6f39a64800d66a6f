"""In-memory session state shared by the request pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from storefront.auth.models import UserProfile

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session at one point in time."""

    user: UserProfile | None
    access_token: str | None
    is_loading: bool

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None and self.user is not None


SessionListener = Callable[[SessionSnapshot], None]


class SessionState:
    """Current user identity and access token for one running client.

    The access token lives only here. Mutations are synchronous and replace
    every field at once, so listeners never observe a half-applied update.
    Starts in the loading state until the bootstrap settles it.
    """

    def __init__(self) -> None:
        self._user: UserProfile | None = None
        self._access_token: str | None = None
        self._is_loading = True
        self._listeners: list[SessionListener] = []

    @property
    def user(self) -> UserProfile | None:
        return self._user

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def snapshot(self) -> SessionSnapshot:
        """Return the current fields as an immutable snapshot."""
        return SessionSnapshot(
            user=self._user,
            access_token=self._access_token,
            is_loading=self._is_loading,
        )

    def set_auth(self, user: UserProfile, token: str) -> None:
        """Install a new signed-in session."""
        if not token:
            raise ValueError("Access token must not be empty")
        self._user = user
        self._access_token = token
        self._is_loading = False
        self._notify()

    def clear_auth(self) -> None:
        """Reset to the logged-out state."""
        self._user = None
        self._access_token = None
        self._is_loading = False
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self._is_loading = bool(is_loading)
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called after every mutation; returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                LOGGER.exception("session_listener_failed")
