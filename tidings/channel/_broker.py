"""Broker configuration helpers for the Dramatiq delivery channel.

This private module decides which broker backs the channel and makes sure the
middleware the consumer relies on is installed. Both the HTTP runtime and the
worker call :func:`ensure_broker_configured` before touching Dramatiq.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq import broker as dramatiq_broker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import CurrentMessage

from tidings.config import TidingsConfig
from tidings.logging import get_logger, log_info

logger = get_logger(__name__)

_BROKER_LOCK = threading.Lock()
_broker_configured = False


def _is_running_tests() -> bool:
    """Check if the current process is running under pytest."""
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return True when an in-memory StubBroker should back the channel.

    ``TIDINGS_ALLOW_STUB_BROKER`` set to a truthy value forces the stub, as
    does running under pytest.
    """
    allow_stub = os.environ.get("TIDINGS_ALLOW_STUB_BROKER", "")
    return allow_stub.lower() in {"1", "true", "yes"} or _is_running_tests()


def _build_broker(config: TidingsConfig) -> dramatiq.Broker:
    if _should_use_stub_broker():
        log_info(logger, "Using in-memory StubBroker for the delivery channel")
        return StubBroker()

    from dramatiq.brokers.redis import RedisBroker

    log_info(logger, "Using Redis broker for the delivery channel")
    return RedisBroker(url=config.broker_url)


def _ensure_current_message(broker: dramatiq.Broker) -> None:
    # The consumer reads its delivery id from CurrentMessage.
    if not any(isinstance(mw, CurrentMessage) for mw in broker.middleware):
        broker.add_middleware(CurrentMessage())


def ensure_broker_configured(config: TidingsConfig | None = None) -> dramatiq.Broker:
    """Return the process-wide Dramatiq broker, configuring it on first use.

    Thread-safe: a lock and sentinel make configuration idempotent even when
    called concurrently from several worker threads. A broker installed by
    someone else (for example a test fixture) is kept as is; only the
    ``CurrentMessage`` middleware is added to it.

    Parameters
    ----------
    config
        Settings providing ``broker_url``; read from the environment when
        omitted.

    Returns
    -------
    dramatiq.Broker
        The broker all actors and publishers in this process share.

    """
    global _broker_configured

    if _broker_configured:
        return dramatiq.get_broker()

    with _BROKER_LOCK:
        # Double-check after acquiring the lock
        if _broker_configured:
            return dramatiq.get_broker()

        current = dramatiq_broker.global_broker
        if current is None:
            current = _build_broker(config or TidingsConfig.from_env())
            dramatiq.set_broker(current)

        _ensure_current_message(current)
        _broker_configured = True
        return current
