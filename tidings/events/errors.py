"""Errors raised while decoding deliveries into activity events."""

from __future__ import annotations


class EventDecodeError(ValueError):
    """Raised when a delivery payload cannot be turned into an ActivityEvent.

    Covers broken transport encoding, bytes that are not JSON, and JSON that
    does not have the activity event shape. The consumer never persists
    anything for such a delivery.
    """

    def __init__(self, reason: str) -> None:
        """Record why the payload was rejected."""
        self.reason = reason
        super().__init__(f"malformed delivery payload: {reason}")

    @classmethod
    def for_transport(cls) -> EventDecodeError:
        """Return an error for payloads that are not valid base64."""
        return cls("transport encoding is not valid base64")
