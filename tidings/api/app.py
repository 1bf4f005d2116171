"""Application factory for the Tidings Falcon ASGI application.

This module provides ``create_app()`` which builds the ingress application:
health probes are always registered and the activity endpoint is added when
a publisher is supplied.

Usage
-----
Create a health-only app::

    app = create_app()

Create the full ingress app::

    from tidings.api.app import AppDependencies, create_app
    from tidings.channel import DramatiqPublisher

    deps = AppDependencies(publisher=DramatiqPublisher(), topic_name="activity")
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from tidings.api.errors import (
    InvalidInputError,
    handle_invalid_input,
    handle_publish_error,
)
from tidings.api.events.resources import ActivityEventResource
from tidings.api.health.resources import HealthResource, ReadyResource
from tidings.channel.errors import PublishError
from tidings.config import DEFAULT_TOPIC

if typ.TYPE_CHECKING:
    from tidings.channel.protocol import EventPublisher

__all__ = ["ACTIVITY_ROUTES", "AppDependencies", "create_app"]

#: ``/api/...`` keeps clients of the earlier service path working.
ACTIVITY_ROUTES = ("/events/activity", "/api/events/activity")


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    publisher
        Delivery channel port. When ``None`` only health endpoints are
        registered.
    topic_name
        Topic accepted events are published under.

    """

    publisher: EventPublisher | None = None
    topic_name: str = DEFAULT_TOPIC


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or lacking a
        publisher, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()

    # Health endpoints are always available
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())

    if dependencies is not None and dependencies.publisher is not None:
        resource = ActivityEventResource(
            dependencies.publisher, topic=dependencies.topic_name
        )
        for route in ACTIVITY_ROUTES:
            app.add_route(route, resource)

    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(PublishError, handle_publish_error)

    return app
