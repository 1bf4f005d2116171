"""Wire encoding for activity events travelling through the delivery channel.

Events are serialised to JSON and then wrapped in base64 text so they survive
any broker that only carries strings. :func:`decode_delivery` reverses both
steps and validates the result, raising :class:`EventDecodeError` for every
kind of malformed input.
"""

from __future__ import annotations

import base64
import binascii

import msgspec

from tidings.events.errors import EventDecodeError
from tidings.events.models import ActivityEvent

_decoder = msgspec.json.Decoder(ActivityEvent)


def encode_event(event: ActivityEvent) -> bytes:
    """Serialise *event* to JSON bytes with camelCase keys."""
    return msgspec.json.encode(event)


def to_transport(data: bytes) -> str:
    """Wrap raw *data* in base64 text for the broker."""
    return base64.b64encode(data).decode("ascii")


def from_transport(data: str | bytes) -> bytes:
    """Unwrap base64 transport text back to raw bytes."""
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EventDecodeError.for_transport() from exc


def decode_event(raw: bytes) -> ActivityEvent:
    """Decode JSON bytes into an :class:`ActivityEvent`."""
    try:
        return _decoder.decode(raw)
    except msgspec.ValidationError as exc:
        raise EventDecodeError(str(exc)) from exc
    except msgspec.DecodeError as exc:
        raise EventDecodeError(f"payload is not valid JSON ({exc})") from exc


def decode_delivery(data: str | bytes) -> ActivityEvent:
    """Decode a transport-encoded delivery payload into an event."""
    return decode_event(from_transport(data))


__all__ = [
    "decode_delivery",
    "decode_event",
    "encode_event",
    "from_transport",
    "to_transport",
]
