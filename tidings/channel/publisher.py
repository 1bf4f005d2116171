"""Dramatiq-backed EventPublisher.

Usage
-----
Publish an encoded event and keep its delivery id::

    publisher = DramatiqPublisher()
    delivery_id = await publisher.publish("user-activity-events", data)

"""

from __future__ import annotations

import asyncio
import typing as typ

import dramatiq

from tidings.channel._broker import ensure_broker_configured
from tidings.channel.errors import PublishError
from tidings.channel.protocol import ACTIVITY_ACTOR_NAME
from tidings.events.codec import to_transport
from tidings.logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    from dramatiq import Broker

__all__ = ["DramatiqPublisher"]

logger = get_logger(__name__)


class DramatiqPublisher:
    """Publish activity events as messages for the consumer actor.

    The message id Dramatiq assigns is returned as the delivery id. Dramatiq
    keeps that id when it retries a message, so redeliveries are recognisable
    downstream.

    Parameters
    ----------
    broker
        Broker to enqueue on. Defaults to the process-wide broker from
        :func:`ensure_broker_configured`, resolved lazily.
    actor_name
        Name of the consuming actor.

    """

    def __init__(
        self,
        broker: Broker | None = None,
        *,
        actor_name: str = ACTIVITY_ACTOR_NAME,
    ) -> None:
        """Store the broker and the target actor name."""
        self._broker = broker
        self._actor_name = actor_name

    async def publish(self, topic: str, data: bytes) -> str:
        """Enqueue *data* on *topic* without blocking the event loop."""
        return await asyncio.to_thread(self._enqueue, topic, data)

    def _resolve_broker(self) -> Broker:
        if self._broker is None:
            self._broker = ensure_broker_configured()
        return self._broker

    def _enqueue(self, topic: str, data: bytes) -> str:
        try:
            broker = self._resolve_broker()
            if topic not in broker.get_declared_queues():
                log_info(logger, "Topic %r not declared; declaring it now", topic)
                broker.declare_queue(topic)

            message = dramatiq.Message(
                queue_name=topic,
                actor_name=self._actor_name,
                args=(to_transport(data),),
                kwargs={},
                options={},
            )
            enqueued = broker.enqueue(message)
        except Exception as exc:  # noqa: BLE001 - any broker failure is a publish failure
            log_exception(logger, f"Publishing to topic {topic!r} failed", exc)
            raise PublishError(topic) from exc

        log_info(
            logger, "Message %s published to topic %s", enqueued.message_id, topic
        )
        return enqueued.message_id
