"""Client-side API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import httpx

from storefront.api.contracts import ApiErrorResponse


class ClientErrorCode(StrEnum):
    """Machine-readable client error codes."""

    REQUEST_REJECTED = "REQUEST_REJECTED"
    REFRESH_REJECTED = "REFRESH_REJECTED"
    REPLAY_REJECTED = "REPLAY_REJECTED"
    NO_REFRESH_TOKEN = "NO_REFRESH_TOKEN"


class ApiClientError(Exception):
    """Error raised for a non-successful API response."""

    def __init__(
        self,
        *,
        error_code: ClientErrorCode,
        message: str,
        status_code: int | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        """Build an error carrying a stable code and the originating response."""
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.response = response

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable error envelope."""
        return {
            "error_code": str(self.error_code),
            "message": self.message,
            "status_code": self.status_code,
        }


class RefreshRejectedError(ApiClientError):
    """The session could not be refreshed; the user must sign in again."""

    def __init__(
        self,
        message: str = "Session expired",
        *,
        error_code: ClientErrorCode = ClientErrorCode.REFRESH_REJECTED,
        status_code: int | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            response=response,
        )


class ReplayFailedError(ApiClientError):
    """A request replayed with a fresh access token was rejected again."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(
            error_code=ClientErrorCode.REPLAY_REJECTED,
            message=error_message_from_response(
                response, default="Request rejected after token refresh"
            ),
            status_code=response.status_code,
            response=response,
        )


def error_message_from_response(
    response: httpx.Response, default: str = "Unexpected error"
) -> str:
    """Extract the human-readable message from an API error envelope."""
    try:
        envelope = ApiErrorResponse.model_validate(response.json())
    except ValueError:
        return default
    message = envelope.message
    if isinstance(message, list):
        return "; ".join(str(item) for item in message if item) or default
    return str(message or default)


def raise_for_api_error(
    response: httpx.Response,
    *,
    error_code: ClientErrorCode = ClientErrorCode.REQUEST_REJECTED,
) -> None:
    """Raise ApiClientError when the response status is not successful."""
    if response.is_success:
        return
    raise ApiClientError(
        error_code=error_code,
        message=error_message_from_response(response),
        status_code=response.status_code,
        response=response,
    )
