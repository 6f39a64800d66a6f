"""Thin wrappers over the public authentication endpoints.

These calls go straight through the raw HTTP client: they never carry the
session's bearer token implicitly and a 401 here is an answer, not a signal
to refresh.
"""

from __future__ import annotations

import httpx

from storefront.api.contracts import MessageResponse
from storefront.api.errors import (
    ClientErrorCode,
    RefreshRejectedError,
    error_message_from_response,
    raise_for_api_error,
)
from storefront.auth.models import (
    AuthSession,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)


class AuthGateway:
    """Client for /auth/* endpoints that do not require an access token."""

    def __init__(self, client: httpx.AsyncClient, *, refresh_path: str = "/auth/refresh") -> None:
        self._client = client
        self._refresh_path = refresh_path

    @property
    def refresh_path(self) -> str:
        return self._refresh_path

    async def login(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a token pair."""
        payload = LoginRequest(email=email, password=password)
        response = await self._client.post("/auth/login", json=payload.to_wire())
        raise_for_api_error(response)
        return AuthSession.model_validate(response.json())

    async def register(
        self, *, email: str, password: str, first_name: str, last_name: str
    ) -> AuthSession:
        """Create an account and return its first token pair."""
        payload = RegisterRequest(
            email=email, password=password, first_name=first_name, last_name=last_name
        )
        response = await self._client.post("/auth/register", json=payload.to_wire())
        raise_for_api_error(response)
        return AuthSession.model_validate(response.json())

    async def refresh(self, refresh_token: str) -> AuthSession:
        """Rotate the refresh token; any non-2xx answer rejects the session."""
        payload = RefreshRequest(refresh_token=refresh_token)
        response = await self._client.post(self._refresh_path, json=payload.to_wire())
        if not response.is_success:
            raise RefreshRejectedError(
                error_message_from_response(response, default="Session expired"),
                error_code=ClientErrorCode.REFRESH_REJECTED,
                status_code=response.status_code,
                response=response,
            )
        return AuthSession.model_validate(response.json())

    async def logout(self, refresh_token: str | None, *, access_token: str | None = None) -> None:
        """Revoke the refresh token server-side."""
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
        payload = LogoutRequest(refresh_token=refresh_token)
        response = await self._client.post(
            "/auth/logout", json=payload.to_wire(), headers=headers
        )
        raise_for_api_error(response)

    async def forgot_password(self, email: str) -> MessageResponse:
        payload = ForgotPasswordRequest(email=email)
        response = await self._client.post("/auth/forgot-password", json=payload.to_wire())
        raise_for_api_error(response)
        return MessageResponse.model_validate(response.json())

    async def reset_password(self, token: str, new_password: str) -> MessageResponse:
        payload = ResetPasswordRequest(token=token, new_password=new_password)
        response = await self._client.post("/auth/reset-password", json=payload.to_wire())
        raise_for_api_error(response)
        return MessageResponse.model_validate(response.json())
