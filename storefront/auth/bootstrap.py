"""One-time session bootstrap at client start."""

from __future__ import annotations

import logging

import httpx

from storefront.api.errors import ApiClientError
from storefront.auth.coordinator import RefreshCall
from storefront.auth.repository import RefreshTokenCache
from storefront.auth.state import SessionSnapshot, SessionState

LOGGER = logging.getLogger(__name__)


class SessionBootstrap:
    """Decide whether a cached session can be used before the client is ready.

    Nothing else can be in flight yet, so the refresh is issued directly
    instead of through the refresh coordinator, and a rejected token only
    clears the session without a login redirect.
    """

    def __init__(
        self,
        state: SessionState,
        token_cache: RefreshTokenCache,
        refresh_call: RefreshCall,
    ) -> None:
        self._state = state
        self._token_cache = token_cache
        self._refresh_call = refresh_call
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    async def run(self) -> SessionSnapshot:
        """Settle the loading state; later calls return the current snapshot."""
        if self._completed:
            return self._state.snapshot()
        self._completed = True

        if self._state.access_token is not None:
            self._state.set_loading(False)
            return self._state.snapshot()

        refresh_token = self._token_cache.get()
        if refresh_token is None:
            LOGGER.info("session_bootstrap_anonymous")
            self._state.set_loading(False)
            return self._state.snapshot()

        try:
            session = await self._refresh_call(refresh_token)
        except (ApiClientError, httpx.HTTPError, ValueError) as exc:
            # ValueError covers undecodable bodies and pydantic validation errors.
            LOGGER.warning("session_bootstrap_refresh_failed: %s", exc)
            self._token_cache.clear()
            self._state.clear_auth()
        else:
            self._state.set_auth(session.user, session.access_token)
            self._token_cache.set(session.refresh_token)
            LOGGER.info("session_bootstrap_restored")
        finally:
            self._state.set_loading(False)
        return self._state.snapshot()
