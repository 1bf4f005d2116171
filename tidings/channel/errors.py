"""Errors raised by the delivery channel."""

from __future__ import annotations


class PublishError(RuntimeError):
    """Raised when an event could not be handed to the delivery channel.

    The publisher never retries; callers decide whether to resubmit.

    Attributes
    ----------
    topic
        Topic (Dramatiq queue) the event was addressed to.

    """

    def __init__(self, topic: str) -> None:
        """Record the topic the failed submission targeted."""
        self.topic = topic
        super().__init__(f"could not publish event to topic {topic!r}")
