"""EventPublisher protocol for handing events to the delivery channel."""

from __future__ import annotations

import typing as typ

#: Dramatiq actor that consumes activity events; shared by both sides.
ACTIVITY_ACTOR_NAME = "process_activity_event"


@typ.runtime_checkable
class EventPublisher(typ.Protocol):
    """Port for submitting encoded events to a topic.

    Implementations return the channel-assigned delivery identifier. That
    identifier travels with every redelivery of the message and is the key
    the consumer deduplicates on.

    Examples
    --------
    >>> from tidings.channel import DramatiqPublisher, EventPublisher
    >>> isinstance(DramatiqPublisher(), EventPublisher)
    True

    """

    async def publish(self, topic: str, data: bytes) -> str:
        """Submit *data* under *topic* and return its delivery id.

        Raises
        ------
        PublishError
            If the channel rejected or could not accept the submission.

        """
        ...
