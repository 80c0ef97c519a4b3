"""Dashboard API — HTTP client and error taxonomy."""

from mfgboard.api.client import KanbanApiClient
from mfgboard.api.errors import (
    KanbanError,
    RequestFailedError,
    UnexpectedResponseError,
    ValidationError,
)

__all__ = [
    "KanbanApiClient",
    "KanbanError",
    "RequestFailedError",
    "UnexpectedResponseError",
    "ValidationError",
]
