"""Pydantic models for the storefront API wire format."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model mapping snake_case fields to camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump the model using camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApiErrorResponse(CamelModel):
    """Error envelope returned by the API for non-2xx responses."""

    status_code: int | None = Field(
        default=None, description="HTTP status code echoed by the server"
    )
    message: str | list[str] | None = Field(
        default=None, description="Human-readable error message"
    )
    error: str | None = None
    details: dict[str, list[str]] | None = None


class MessageResponse(CamelModel):
    """Plain acknowledgement payload."""

    message: str
