"""In-process fake of the storefront auth API served through ASGI."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import httpx
from fastapi import APIRouter, FastAPI, Header, Response
from fastapi.responses import JSONResponse

from storefront.api.contracts import ApiErrorResponse
from storefront.auth.models import (
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from storefront.auth.repository import KeyValueStore, MemoryKeyValueStore
from storefront.core.config import ApiConfig, AppConfig, AuthConfig, LoggingConfig
from storefront.runtime import StorefrontClient
from tests.mock_user import MOCK_PASSWORD, mock_user

BASE_URL = "http://storefront.test/api"


def _error(status_code: int, message: str | list[str]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiErrorResponse(status_code=status_code, message=message).to_wire(),
    )


def _bearer(authorization: str | None) -> str:
    parts = (authorization or "").strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


class FakeStorefrontBackend:
    """Rotating-token auth server with knobs for expiring and rejecting tokens."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {
            mock_user()["email"]: {"password": MOCK_PASSWORD, "profile": mock_user()}
        }
        self.access_tokens: dict[str, str] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.refresh_calls = 0
        self.logout_calls = 0
        self.seen_tokens: list[str] = []
        self.refresh_gate: asyncio.Event | None = None
        self.reject_refresh = False
        self.reject_all_access = False
        self.fail_logout = False
        self._ids = itertools.count(1)
        self.app = FastAPI()
        self.app.include_router(self._build_router())

    def issue_session(self, email: str) -> dict[str, Any]:
        """Mint a new token pair for a known user."""
        serial = next(self._ids)
        access_token = f"access-{serial}"
        refresh_token = f"refresh-{serial}"
        self.access_tokens[access_token] = email
        self.refresh_tokens[refresh_token] = email
        return {
            "user": self.users[email]["profile"],
            "accessToken": access_token,
            "refreshToken": refresh_token,
        }

    def expire_access_tokens(self) -> None:
        self.access_tokens.clear()

    def transport(self) -> httpx.ASGITransport:
        return httpx.ASGITransport(app=self.app)

    def _build_router(self) -> APIRouter:
        router = APIRouter(prefix="/api")

        @router.post("/auth/login")
        async def login(req: LoginRequest) -> Response:
            user = self.users.get(req.email)
            if user is None or user["password"] != req.password:
                return _error(401, "Credenciales invalidas")
            return JSONResponse(self.issue_session(req.email))

        @router.post("/auth/register")
        async def register(req: RegisterRequest) -> Response:
            if req.email in self.users:
                return _error(409, "El email ya esta registrado")
            profile = mock_user(
                id=f"usr_{len(self.users) + 1:02d}",
                email=req.email,
                firstName=req.first_name,
                lastName=req.last_name,
            )
            self.users[req.email] = {"password": req.password, "profile": profile}
            return JSONResponse(self.issue_session(req.email), status_code=201)

        @router.post("/auth/refresh")
        async def refresh(req: RefreshRequest) -> Response:
            self.refresh_calls += 1
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            email = self.refresh_tokens.pop(req.refresh_token, None)
            if self.reject_refresh or email is None:
                return _error(401, "Refresh token invalido")
            return JSONResponse(self.issue_session(email))

        @router.post("/auth/logout")
        async def logout(req: LogoutRequest) -> Response:
            self.logout_calls += 1
            if self.fail_logout:
                return _error(500, "Logout failed")
            if req.refresh_token:
                self.refresh_tokens.pop(req.refresh_token, None)
            return Response(status_code=204)

        @router.get("/auth/me")
        async def me(authorization: str | None = Header(default=None)) -> Response:
            email = self.access_tokens.get(_bearer(authorization))
            if email is None:
                return _error(401, "Unauthorized")
            return JSONResponse(self.users[email]["profile"])

        @router.post("/auth/forgot-password")
        async def forgot_password(req: ForgotPasswordRequest) -> Response:
            return JSONResponse({"message": f"Instrucciones enviadas a {req.email}"})

        @router.post("/auth/reset-password")
        async def reset_password(req: ResetPasswordRequest) -> Response:
            if req.token != "reset-ok":
                return _error(400, ["token invalido", "token expirado"])
            return JSONResponse({"message": "Contraseña actualizada"})

        @router.get("/products")
        async def products(authorization: str | None = Header(default=None)) -> Response:
            token = _bearer(authorization)
            self.seen_tokens.append(token)
            if self.reject_all_access or token not in self.access_tokens:
                return _error(401, "Unauthorized")
            return JSONResponse({"items": [{"sku": "BM-001"}], "token": token})

        @router.post("/cart/items")
        async def add_cart_item(
            payload: dict[str, Any], authorization: str | None = Header(default=None)
        ) -> Response:
            if _bearer(authorization) not in self.access_tokens:
                return _error(401, "Unauthorized")
            return JSONResponse({"added": payload}, status_code=201)

        @router.get("/orders")
        async def orders() -> Response:
            return _error(500, "Database unavailable")

        return router


def build_config(**auth_overrides: str) -> AppConfig:
    auth = {
        "refresh_path": "/auth/refresh",
        "refresh_token_key": "bengala-refresh-token",
        "token_store_path": "runtime/token_store.json",
        "login_route": "/iniciar-sesion",
    }
    auth.update(auth_overrides)
    return AppConfig(
        api=ApiConfig(base_url=BASE_URL, timeout_seconds=5),
        auth=AuthConfig(**auth),
        logging=LoggingConfig(level="INFO"),
    )


def build_client(
    backend: FakeStorefrontBackend,
    *,
    navigations: list[str] | None = None,
    store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StorefrontClient:
    sink = navigations if navigations is not None else []
    return StorefrontClient(
        build_config(),
        store=store if store is not None else MemoryKeyValueStore(),
        transport=transport or backend.transport(),
        navigate=sink.append,
    )


async def wait_until(predicate, *, attempts: int = 300) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("Condition not reached in time")
