"""Ingress resource accepting user-activity events.

``POST /events/activity`` validates the body, hands the event to the delivery
channel and answers ``202 Accepted``: the event is queued, not yet processed.

Usage
-----
Register the resource on the Falcon app::

    resource = ActivityEventResource(publisher, topic="user-activity-events")
    app.add_route("/events/activity", resource)

"""

from __future__ import annotations

import typing as typ

import falcon

from tidings.api.errors import InvalidInputError
from tidings.api.events.validation import validate_activity_event
from tidings.channel.errors import PublishError
from tidings.events.codec import encode_event
from tidings.logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from tidings.channel.protocol import EventPublisher
    from tidings.events.models import ActivityEvent

__all__ = ["ACCEPTED_MESSAGE", "ActivityEventResource"]

logger = get_logger(__name__)

ACCEPTED_MESSAGE = "Event received and queued for processing."


class ActivityEventResource:
    """Validate activity events and publish them to the configured topic."""

    def __init__(self, publisher: EventPublisher, *, topic: str) -> None:
        """Configure the resource with its publisher and target topic.

        Parameters
        ----------
        publisher
            Delivery channel port used for submission.
        topic
            Topic name every accepted event is published under.

        """
        self._publisher = publisher
        self._topic = topic

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle ``POST /events/activity``.

        Exactly one publish call is made for a valid body and none for an
        invalid one. Publish failures are not retried.

        Raises
        ------
        InvalidInputError
            If the body is not valid JSON or fails validation (HTTP 400).
        PublishError
            If the delivery channel rejects the event (HTTP 500).

        """
        try:
            body = await req.get_media(default_when_empty=None)
        except falcon.MediaMalformedError as exc:
            msg = "Invalid request body. Must be valid JSON."
            raise InvalidInputError(msg, field="body") from exc

        event = validate_activity_event(body)
        delivery_id = await self._publish(event)

        resp.status = falcon.HTTP_202
        resp.media = {
            "status": "accepted",
            "message": ACCEPTED_MESSAGE,
            "deliveryId": delivery_id,
        }

    async def _publish(self, event: ActivityEvent) -> str:
        try:
            delivery_id = await self._publisher.publish(
                self._topic, encode_event(event)
            )
        except PublishError:
            raise
        except Exception as exc:  # noqa: BLE001 - any channel failure is a publish failure
            log_exception(logger, f"Publishing to topic {self._topic!r} failed", exc)
            raise PublishError(self._topic) from exc

        log_info(
            logger,
            "Accepted %s event for user %s as delivery %s",
            event.event_type,
            event.user_id,
            delivery_id,
        )
        return delivery_id
