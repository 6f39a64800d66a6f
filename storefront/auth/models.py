"""Pydantic models for authentication domain."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from storefront.api.contracts import CamelModel


class UserRole(StrEnum):
    """Roles assigned by the storefront backend."""

    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    WAREHOUSE = "WAREHOUSE"
    SUPER_ADMIN = "SUPER_ADMIN"


class UserProfile(CamelModel):
    """Authenticated user identity as returned by the API."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    avatar_url: str | None = None
    role: UserRole = UserRole.CUSTOMER
    created_at: datetime | None = None

    @property
    def landing_route(self) -> str:
        """Route a freshly signed-in user is sent to."""
        if self.role in {UserRole.ADMIN, UserRole.SUPER_ADMIN}:
            return "/admin"
        if self.role == UserRole.WAREHOUSE:
            return "/admin/pedidos"
        return "/"


class AuthSession(CamelModel):
    """Token pair plus user returned by login, register and refresh."""

    user: UserProfile
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)


class LoginRequest(CamelModel):
    """Login request payload."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    """Self sign-up payload."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    """Refresh request payload."""

    refresh_token: str = Field(min_length=1)


class LogoutRequest(CamelModel):
    """Logout request payload."""

    refresh_token: str | None = None


class ForgotPasswordRequest(CamelModel):
    """Password reset e-mail request payload."""

    email: str = Field(min_length=3)


class ResetPasswordRequest(CamelModel):
    """Password reset confirmation payload."""

    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
