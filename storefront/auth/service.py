"""Authentication service for login, logout and account recovery."""

from __future__ import annotations

import logging

import httpx

from storefront.api.client import RequestDispatcher
from storefront.api.contracts import MessageResponse
from storefront.api.errors import ApiClientError, raise_for_api_error
from storefront.auth.gateway import AuthGateway
from storefront.auth.models import AuthSession, UserProfile
from storefront.auth.repository import RefreshTokenCache
from storefront.auth.state import SessionState

LOGGER = logging.getLogger(__name__)


class AuthService:
    """Session lifecycle operations exposed to application code."""

    def __init__(
        self,
        gateway: AuthGateway,
        dispatcher: RequestDispatcher,
        state: SessionState,
        token_cache: RefreshTokenCache,
    ) -> None:
        """Initialize service dependencies."""
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._state = state
        self._token_cache = token_cache

    async def login(self, email: str, password: str) -> UserProfile:
        """Authenticate credentials and start a session."""
        session = await self._gateway.login(email.strip().lower(), password)
        self._start_session(session)
        LOGGER.info("login_succeeded")
        return session.user

    async def register(
        self, *, email: str, password: str, first_name: str, last_name: str
    ) -> UserProfile:
        """Create an account and start a session for it."""
        session = await self._gateway.register(
            email=email.strip().lower(),
            password=password,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
        )
        self._start_session(session)
        LOGGER.info("register_succeeded")
        return session.user

    async def logout(self) -> None:
        """End the session locally; server-side revocation is best effort."""
        refresh_token = self._token_cache.get()
        access_token = self._state.access_token
        try:
            await self._gateway.logout(refresh_token, access_token=access_token)
        except (ApiClientError, httpx.HTTPError) as exc:
            LOGGER.warning("logout_request_failed: %s", exc)
        finally:
            self._state.clear_auth()
            self._token_cache.clear()

    async def current_user(self) -> UserProfile:
        """Fetch the profile the current access token belongs to."""
        response = await self._dispatcher.request("GET", "/auth/me")
        raise_for_api_error(response)
        return UserProfile.model_validate(response.json())

    async def forgot_password(self, email: str) -> MessageResponse:
        return await self._gateway.forgot_password(email.strip().lower())

    async def reset_password(self, token: str, new_password: str) -> MessageResponse:
        return await self._gateway.reset_password(token, new_password)

    def _start_session(self, session: AuthSession) -> None:
        self._state.set_auth(session.user, session.access_token)
        self._token_cache.set(session.refresh_token)
