"""Typed models for activity events and their deliveries."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

NonEmptyStr = typ.Annotated[str, msgspec.Meta(min_length=1)]


class ActivityEvent(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """User activity submitted by a caller.

    Field names are camelCase on the wire (``userId``, ``eventType``) and
    snake_case in Python. The event carries no identity of its own; the
    delivery channel assigns one when it is published.
    """

    user_id: NonEmptyStr
    event_type: NonEmptyStr
    payload: dict[str, typ.Any]


@dc.dataclass(frozen=True, slots=True)
class Delivery:
    """One delivery attempt as seen by the consumer.

    Attributes
    ----------
    delivery_id
        Channel-assigned identifier. Redeliveries of the same logical message
        reuse it, which is what makes it usable as an idempotency key.
    data
        Transport-encoded event (base64 text wrapping JSON).

    """

    delivery_id: str
    data: str | bytes
