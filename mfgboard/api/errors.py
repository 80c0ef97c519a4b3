"""Error taxonomy for board operations.

  ValidationError          rejected locally, before any request is sent
  RequestFailedError       non-2xx status, network error, or success=false
  UnexpectedResponseError  body was not JSON where JSON was required
"""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Unknown error"


class KanbanError(Exception):
    """Base class for every board operation failure."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


class ValidationError(KanbanError):
    """Malformed or missing input; no request was made.

    Attributes:
        field: Name of the offending field, if known.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class RequestFailedError(KanbanError):
    """The server or the network rejected the request.

    Attributes:
        status: HTTP status code, or None for transport errors.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class UnexpectedResponseError(KanbanError):
    """Response body was not the JSON document the endpoint promises.

    Attributes:
        status: HTTP status code.
        content_type: Content-Type header received.
        body_excerpt: First characters of the body, for diagnostics.
    """

    def __init__(self, status: int, content_type: str | None, body_excerpt: str):
        super().__init__(
            f"Expected JSON response but got {content_type or 'no content type'}. "
            f"Response: {body_excerpt}"
        )
        self.status = status
        self.content_type = content_type
        self.body_excerpt = body_excerpt


def failure_message(error: BaseException | None) -> str:
    """User-facing description of a failure; generic when none is available."""
    if isinstance(error, KanbanError) and error.message:
        return error.message
    if error is not None and str(error):
        return str(error)
    return GENERIC_FAILURE_MESSAGE
