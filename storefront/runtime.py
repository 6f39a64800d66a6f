"""Composition root wiring the authenticated storefront client."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from storefront.api.client import Navigate, RequestDispatcher
from storefront.auth.bootstrap import SessionBootstrap
from storefront.auth.gateway import AuthGateway
from storefront.auth.repository import JsonFileKeyValueStore, KeyValueStore, RefreshTokenCache
from storefront.auth.service import AuthService
from storefront.auth.state import SessionSnapshot, SessionState
from storefront.core.config import AppConfig

LOGGER = logging.getLogger(__name__)


class StorefrontClient:
    """One running client: session, token cache, dispatcher and auth service."""

    def __init__(
        self,
        config: AppConfig,
        *,
        store: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        navigate: Navigate | None = None,
    ) -> None:
        """Build every collaborator from config; nothing touches the network yet."""
        self.config = config
        self.http = httpx.AsyncClient(
            base_url=config.api.base_url,
            timeout=httpx.Timeout(config.api.timeout_seconds),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        if store is None:
            store = JsonFileKeyValueStore(Path(config.auth.token_store_path))
        self.state = SessionState()
        self.token_cache = RefreshTokenCache(store, config.auth.refresh_token_key)
        self.gateway = AuthGateway(self.http, refresh_path=config.auth.refresh_path)
        self.dispatcher = RequestDispatcher(
            self.http,
            self.state,
            self.token_cache,
            refresh_call=self.gateway.refresh,
            refresh_path=config.auth.refresh_path,
            login_route=config.auth.login_route,
            navigate=navigate or _log_navigation,
        )
        self.auth = AuthService(self.gateway, self.dispatcher, self.state, self.token_cache)
        self.bootstrap = SessionBootstrap(self.state, self.token_cache, self.gateway.refresh)

    async def start(self) -> SessionSnapshot:
        """Run the session bootstrap; the client is interactive afterwards."""
        return await self.bootstrap.run()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await self.dispatcher.request(method, url, **kwargs)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "StorefrontClient":
        try:
            await self.start()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _log_navigation(route: str) -> None:
    LOGGER.warning("login_required", extra={"path": route})
