"""Client configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ApiConfig:
    """Remote storefront API settings."""

    base_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class AuthConfig:
    """Session and token persistence settings."""

    refresh_path: str
    refresh_token_key: str
    token_store_path: str
    login_route: str


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level client configuration."""

    api: ApiConfig
    auth: AuthConfig
    logging: LoggingConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build client config from process environment."""
        base_url = (
            os.getenv("STOREFRONT_API_URL", "").strip() or "http://localhost:3000/api"
        )
        timeout_seconds = float(os.getenv("STOREFRONT_HTTP_TIMEOUT_SECONDS", "15"))
        refresh_path = (
            os.getenv("STOREFRONT_REFRESH_PATH", "").strip() or "/auth/refresh"
        )
        refresh_token_key = (
            os.getenv("STOREFRONT_REFRESH_TOKEN_KEY", "").strip()
            or "bengala-refresh-token"
        )
        token_store_path = (
            os.getenv("STOREFRONT_TOKEN_STORE_PATH", "").strip()
            or "runtime/token_store.json"
        )
        login_route = (
            os.getenv("STOREFRONT_LOGIN_ROUTE", "").strip() or "/iniciar-sesion"
        )
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"

        return AppConfig(
            api=ApiConfig(base_url=base_url, timeout_seconds=timeout_seconds),
            auth=AuthConfig(
                refresh_path=refresh_path,
                refresh_token_key=refresh_token_key,
                token_store_path=token_store_path,
                login_route=login_route,
            ),
            logging=LoggingConfig(level=log_level),
        )
