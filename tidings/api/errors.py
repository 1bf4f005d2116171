"""Domain exceptions and Falcon error handlers for the ingress API.

Usage
-----
Register error handlers on the Falcon app::

    from tidings.api.errors import (
        InvalidInputError,
        handle_invalid_input,
        handle_publish_error,
    )
    from tidings.channel.errors import PublishError

    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(PublishError, handle_publish_error)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from tidings.channel.errors import PublishError

__all__ = [
    "PUBLISH_FAILURE_MESSAGE",
    "InvalidInputError",
    "handle_invalid_input",
    "handle_publish_error",
]

PUBLISH_FAILURE_MESSAGE = "Internal Server Error. Could not publish event."


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Use this instead of ``ValueError`` so that only *intentional*
    validation failures are surfaced to the caller, while genuine
    programmer mistakes still propagate as unhandled 500s.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure. It always
        names the offending field.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to ``400 {"error": ..., "field": ...}``.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {"error": ex.reason}
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_publish_error(
    _req: Request,
    resp: Response,
    _ex: PublishError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PublishError`` to a 500 with a fixed, non-revealing message."""
    resp.status = falcon.HTTP_500
    resp.media = {"error": PUBLISH_FAILURE_MESSAGE}
