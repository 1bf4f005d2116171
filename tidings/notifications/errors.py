"""Errors raised while recording deliveries as notifications.

Every one of these is a processing failure: the actor lets it propagate so
Dramatiq redelivers (or dead-letters) the message. None of them is caught
inside the consumer.
"""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for consumer-side failures."""


class StoreConnectionError(NotificationError):
    """Raised when the notification store cannot be reached.

    Attributes
    ----------
    database_url
        Store URL with any password masked.

    """

    def __init__(self, database_url: str) -> None:
        """Record the (masked) URL that could not be reached."""
        self.database_url = database_url
        super().__init__(f"could not connect to notification store {database_url}")


class StoreTimeoutError(NotificationError):
    """Raised when a store round trip exceeds the configured bound."""

    def __init__(self, delivery_id: str, timeout: float) -> None:
        """Record which delivery timed out and the bound that was applied."""
        self.delivery_id = delivery_id
        self.timeout = timeout
        super().__init__(
            f"store operations for delivery {delivery_id} exceeded {timeout:g}s"
        )


class NotificationPersistError(NotificationError):
    """Raised when an insert conflicts but no existing row can be found."""

    def __init__(self, delivery_id: str) -> None:
        """Include the delivery id in a deterministic message."""
        self.delivery_id = delivery_id
        super().__init__(
            f"expected existing notification for delivery {delivery_id} "
            "after unique constraint violation"
        )


class MissingDeliveryIdError(NotificationError):
    """Raised when the consumer runs without a channel-assigned delivery id."""

    def __init__(self) -> None:
        """Attach a consistent message."""
        super().__init__("no current Dramatiq message; delivery id unavailable")
