"""Dramatiq actor consuming activity events from the delivery channel.

The actor is the consumer's transport binding: Dramatiq calls it once per
delivery attempt, acknowledges the message when it returns and redelivers it
(same message id, exponential backoff) when it raises. Malformed payloads are
listed in ``throws`` so they go straight to the dead-letter queue instead of
being retried.

Run a worker with::

    dramatiq tidings.notifications.actor

"""

from __future__ import annotations

import asyncio
import typing as typ

import dramatiq
from dramatiq.middleware import CurrentMessage

from tidings.channel._broker import ensure_broker_configured
from tidings.channel.protocol import ACTIVITY_ACTOR_NAME
from tidings.config import TidingsConfig
from tidings.events.errors import EventDecodeError
from tidings.events.models import Delivery
from tidings.logging import configure_logging, get_logger, log_warning
from tidings.notifications.connection import dispose_store_connections
from tidings.notifications.errors import MissingDeliveryIdError
from tidings.notifications.services import process_delivery

if typ.TYPE_CHECKING:
    from dramatiq import Broker, Worker

__all__ = ["WorkerLifecycle", "process_activity_event"]

logger = get_logger(__name__)


class WorkerLifecycle(dramatiq.Middleware):
    """Configure logging on worker boot and release the store on shutdown."""

    def before_worker_boot(self, broker: Broker, worker: Worker) -> None:
        """Install femtologging at the configured level."""
        config = TidingsConfig.from_env()
        normalized, invalid = configure_logging(config.log_level, force=True)
        if invalid:
            log_warning(
                logger,
                "Invalid TIDINGS_LOG_LEVEL %r, falling back to %s",
                config.log_level,
                normalized,
            )

    def after_worker_shutdown(self, broker: Broker, worker: Worker) -> None:
        """Close pooled store connections on worker shutdown."""
        asyncio.run(dispose_store_connections())


# Queue name and retry budget are bound when the actor is declared.
_STARTUP_CONFIG = TidingsConfig.from_env()
_broker = ensure_broker_configured(_STARTUP_CONFIG)
if not any(isinstance(mw, WorkerLifecycle) for mw in _broker.middleware):
    _broker.add_middleware(WorkerLifecycle())


@dramatiq.actor(
    actor_name=ACTIVITY_ACTOR_NAME,
    queue_name=_STARTUP_CONFIG.topic_name,
    max_retries=_STARTUP_CONFIG.max_retries,
    throws=(EventDecodeError,),
)
def process_activity_event(data: str) -> None:
    """Record one delivery of a transport-encoded activity event.

    Parameters
    ----------
    data
        Base64 text wrapping the JSON event, as produced by the publisher.

    Raises
    ------
    MissingDeliveryIdError
        If called outside a Dramatiq worker, where no message id exists.
    EventDecodeError
        If the payload is malformed; the message is dead-lettered.
    StoreConnectionError
        If the store is unreachable; the message is retried.

    """
    message = CurrentMessage.get_current_message()
    if message is None:
        raise MissingDeliveryIdError

    config = TidingsConfig.from_env()
    delivery = Delivery(delivery_id=message.message_id, data=data)
    asyncio.run(
        process_delivery(
            delivery,
            database_url=config.database_url,
            timeout=config.store_timeout_seconds,
        )
    )
