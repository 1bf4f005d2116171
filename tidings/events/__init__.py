"""Activity event model and its wire codec."""

from __future__ import annotations

from .codec import (
    decode_delivery,
    decode_event,
    encode_event,
    from_transport,
    to_transport,
)
from .errors import EventDecodeError
from .models import ActivityEvent, Delivery

__all__ = [
    "ActivityEvent",
    "Delivery",
    "EventDecodeError",
    "decode_delivery",
    "decode_event",
    "encode_event",
    "from_transport",
    "to_transport",
]
