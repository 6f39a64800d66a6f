"""Authenticated request dispatcher with transparent token refresh."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from storefront.api.errors import (
    RefreshRejectedError,
    ReplayFailedError,
    error_message_from_response,
)
from storefront.auth.coordinator import RefreshCall, RefreshCoordinator
from storefront.auth.repository import RefreshTokenCache
from storefront.auth.state import SessionState
from storefront.core.logging import get_correlation_id

LOGGER = logging.getLogger(__name__)

Navigate = Callable[[str], None]


class RequestDispatcher:
    """Send API requests with the session's bearer token attached.

    A 401 on a business call is recovered by one coordinated refresh followed
    by a single replay of the original request. A 401 on the refresh endpoint
    itself, or a failed refresh, ends the session and asks the host to
    navigate to the login route. Every other status, and transport errors,
    reach the caller untouched.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        state: SessionState,
        token_cache: RefreshTokenCache,
        *,
        refresh_call: RefreshCall,
        refresh_path: str = "/auth/refresh",
        login_route: str = "/iniciar-sesion",
        navigate: Navigate | None = None,
    ) -> None:
        self._client = client
        self._state = state
        self._token_cache = token_cache
        self._refresh_path = refresh_path.rstrip("/")
        self._login_route = login_route
        self._navigate = navigate
        self._coordinator = RefreshCoordinator(
            refresh_call,
            state,
            token_cache,
            on_failure=self._on_refresh_failed,
        )

    @property
    def coordinator(self) -> RefreshCoordinator:
        return self._coordinator

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Build a request on the underlying client and send it."""
        return await self.send(self._client.build_request(method, url, **kwargs))

    async def send(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        sent_token = self._state.access_token
        if sent_token is not None:
            request.headers["Authorization"] = f"Bearer {sent_token}"
        correlation_id = get_correlation_id()
        if correlation_id:
            request.headers.setdefault("X-Request-ID", correlation_id)

        response = await self._client.send(request)
        if response.status_code != 401:
            return response

        log_extra = {"method": request.method, "path": request.url.path}
        if self._is_refresh_request(request):
            LOGGER.warning("refresh_request_unauthorized", extra=log_extra)
            self.expire_session()
            raise RefreshRejectedError(
                error_message_from_response(response, default="Session expired"),
                status_code=response.status_code,
                response=response,
            )

        LOGGER.info("access_token_rejected", extra=log_extra)
        token = await self._coordinator.get_valid_token(rejected_token=sent_token)

        # Replayed once; a second 401 is final.
        response = await self._client.send(_with_bearer(request, body, token))
        if response.status_code == 401:
            LOGGER.warning("replay_unauthorized", extra={**log_extra, "status_code": 401})
            raise ReplayFailedError(response)
        LOGGER.debug(
            "request_replayed", extra={**log_extra, "status_code": response.status_code}
        )
        return response

    def expire_session(self) -> None:
        """Drop the session and its refresh token, then redirect to login."""
        self._state.clear_auth()
        self._token_cache.clear()
        self._redirect_to_login()

    def _on_refresh_failed(self, error: RefreshRejectedError) -> None:
        # The coordinator has already cleared the state and the token cache.
        self._redirect_to_login()

    def _redirect_to_login(self) -> None:
        LOGGER.warning("session_expired", extra={"path": self._login_route})
        if self._navigate is not None:
            self._navigate(self._login_route)

    def _is_refresh_request(self, request: httpx.Request) -> bool:
        return request.url.path.rstrip("/").endswith(self._refresh_path)


def _with_bearer(request: httpx.Request, body: bytes, token: str) -> httpx.Request:
    """Clone a request with a different bearer credential."""
    headers = request.headers.copy()
    headers["Authorization"] = f"Bearer {token}"
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        content=body,
        extensions=request.extensions,
    )
