"""Public API wire contracts."""

from storefront.api.contracts.models import (
    ApiErrorResponse,
    CamelModel,
    MessageResponse,
)

__all__ = [
    "ApiErrorResponse",
    "CamelModel",
    "MessageResponse",
]
