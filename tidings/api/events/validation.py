"""Shape checks for activity events submitted over HTTP."""

from __future__ import annotations

import math
import typing as typ

from tidings.api.errors import InvalidInputError
from tidings.events.models import ActivityEvent

__all__ = ["validate_activity_event"]


def _require_string(body: dict[str, typ.Any], field: str) -> str:
    value = body.get(field)
    if not isinstance(value, str) or not value:
        msg = f"Invalid or missing {field}. Must be a string."
        raise InvalidInputError(msg, field=field)
    return value


def _require_object(body: dict[str, typ.Any], field: str) -> dict[str, typ.Any]:
    value = body.get(field)
    # JSON arrays decode to lists, so this also rejects them.
    if not isinstance(value, dict):
        msg = f"Invalid or missing {field}. Must be an object."
        raise InvalidInputError(msg, field=field)
    return value


def _has_non_finite_number(value: object) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite_number(item) for item in value.values())
    if isinstance(value, list):
        return any(_has_non_finite_number(item) for item in value)
    return False


def _require_finite_payload(body: dict[str, typ.Any]) -> dict[str, typ.Any]:
    payload = _require_object(body, "payload")
    # NaN and Infinity parse but have no JSON encoding downstream.
    if _has_non_finite_number(payload):
        msg = "Invalid payload. Numbers must be finite."
        raise InvalidInputError(msg, field="payload")
    return payload


def validate_activity_event(candidate: object) -> ActivityEvent:
    """Validate an untyped request body and build an :class:`ActivityEvent`.

    Checks run in a fixed order (``userId``, ``eventType``, ``payload``) so
    the reported field is deterministic. Keys other than those three are
    ignored.

    Raises
    ------
    InvalidInputError
        If the body is not an object, any field has the wrong shape, or
        ``payload`` holds NaN or an infinite number.

    """
    if not isinstance(candidate, dict):
        msg = "Invalid request body. Must be a JSON object."
        raise InvalidInputError(msg, field="body")

    body = typ.cast("dict[str, typ.Any]", candidate)
    return ActivityEvent(
        user_id=_require_string(body, "userId"),
        event_type=_require_string(body, "eventType"),
        payload=_require_finite_payload(body),
    )
