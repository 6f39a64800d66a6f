"""Single-flight coordination of access token refreshes."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable

from storefront.api.errors import ApiClientError, ClientErrorCode, RefreshRejectedError
from storefront.auth.models import AuthSession
from storefront.auth.repository import RefreshTokenCache
from storefront.auth.state import SessionState

LOGGER = logging.getLogger(__name__)

RefreshCall = Callable[[str], Awaitable[AuthSession]]
FailureHook = Callable[[RefreshRejectedError], None]


class RefreshCoordinator:
    """Guarantee at most one outstanding refresh call per coordinator.

    Every caller that needs a fresh access token awaits ``get_valid_token``.
    The first one starts the refresh in a dedicated task; callers arriving while
    it runs are queued and all of them receive the same outcome, in arrival
    order, when it settles. The in-flight check and the flag update happen in
    one step with no await between them.
    """

    def __init__(
        self,
        refresh_call: RefreshCall,
        state: SessionState,
        token_cache: RefreshTokenCache,
        *,
        on_failure: FailureHook | None = None,
    ) -> None:
        self._refresh_call = refresh_call
        self._state = state
        self._token_cache = token_cache
        self._on_failure = on_failure
        self._in_flight = False
        self._waiters: deque[asyncio.Future[str]] = deque()
        self._task: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending_count(self) -> int:
        return len(self._waiters)

    async def get_valid_token(self, rejected_token: str | None = None) -> str:
        """Return an access token obtained by the current or a new refresh.

        ``rejected_token`` is the token the failed request carried. When no
        refresh is running and the session already holds a different token, a
        refresh finished while that request was on the wire and the current
        token is returned as-is.
        """
        current = self._state.access_token
        if (
            rejected_token is not None
            and not self._in_flight
            and current is not None
            and current != rejected_token
        ):
            return current

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[str] = loop.create_future()
        self._waiters.append(waiter)
        if not self._in_flight:
            self._in_flight = True
            self._task = loop.create_task(self._refresh())
        else:
            LOGGER.debug("token_refresh_joined", extra={"pending": len(self._waiters)})
        return await waiter

    async def _refresh(self) -> None:
        LOGGER.info("token_refresh_started")
        try:
            refresh_token = self._token_cache.get()
            if refresh_token is None:
                raise RefreshRejectedError(
                    "No refresh token available",
                    error_code=ClientErrorCode.NO_REFRESH_TOKEN,
                )
            session = await self._refresh_call(refresh_token)
            self._state.set_auth(session.user, session.access_token)
            self._token_cache.set(session.refresh_token)
        except asyncio.CancelledError:
            for waiter in self._release():
                waiter.cancel()
            raise
        except Exception as exc:
            self._fail(_as_refresh_error(exc))
        else:
            waiters = self._release()
            LOGGER.info("token_refresh_succeeded", extra={"pending": len(waiters)})
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(session.access_token)

    def _fail(self, error: RefreshRejectedError) -> None:
        waiters = self._release()
        LOGGER.warning(
            "token_refresh_failed: %s",
            error.message,
            extra={"pending": len(waiters), "status_code": error.status_code},
        )
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        self._state.clear_auth()
        self._token_cache.clear()
        if self._on_failure is not None:
            try:
                self._on_failure(error)
            except Exception:
                LOGGER.exception("token_refresh_failure_hook_failed")

    def _release(self) -> deque[asyncio.Future[str]]:
        """Detach the queue and drop the in-flight flag."""
        waiters, self._waiters = self._waiters, deque()
        self._in_flight = False
        self._task = None
        return waiters


def _as_refresh_error(exc: Exception) -> RefreshRejectedError:
    """Normalize any refresh failure into a RefreshRejectedError."""
    if isinstance(exc, RefreshRejectedError):
        return exc
    if isinstance(exc, ApiClientError):
        error = RefreshRejectedError(
            exc.message, status_code=exc.status_code, response=exc.response
        )
    else:
        error = RefreshRejectedError(f"Session refresh failed: {exc}")
    error.__cause__ = exc
    return error
