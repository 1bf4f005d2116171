"""Tidings ingress runtime entrypoint.

This module provides the ASGI application factory used by Granian and a
``main()`` that starts the server. The notification consumer runs separately
as a Dramatiq worker (``dramatiq tidings.notifications.actor``).

Configuration is driven by environment variables (see
:class:`tidings.config.TidingsConfig`):

- ``TIDINGS_HOST``: Bind address (default ``0.0.0.0``)
- ``TIDINGS_PORT``: Listen port (default ``3000``)
- ``TIDINGS_LOG_LEVEL``: Log level (default ``INFO``)
- ``TIDINGS_TOPIC``: Topic events are published under
- ``TIDINGS_BROKER_URL``: Redis URL of the Dramatiq broker

Run the service directly with ``python -m tidings.runtime``.
"""

from __future__ import annotations

import typing as typ

from tidings.config import TidingsConfig
from tidings.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "load_config", "main"]

logger = get_logger(__name__)


def load_config() -> TidingsConfig:
    """Read configuration from the environment or exit with status 1.

    Raises
    ------
    SystemExit
        If any ``TIDINGS_*`` variable holds an invalid value.

    """
    try:
        return TidingsConfig.from_env()
    except ValueError as exc:
        # Use error() not exception() - validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the ingress app wired to the Dramatiq publisher.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from tidings.api.app import AppDependencies
    from tidings.api.app import create_app as _create_api_app
    from tidings.channel import DramatiqPublisher, ensure_broker_configured

    config = load_config()
    broker = ensure_broker_configured(config)
    deps = AppDependencies(
        publisher=DramatiqPublisher(broker),
        topic_name=config.topic_name,
    )
    log_info(logger, "Publishing activity events to topic %s", config.topic_name)
    return _create_api_app(deps)


def main() -> None:
    """Start the Tidings ingress server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = load_config()

    # Configure logging - validate log level and warn on invalid values
    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid TIDINGS_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Tidings ingress on %s:%d (log_level=%s)",
        config.host,
        config.port,
        normalized_level,
    )

    server = Granian(
        "tidings.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
