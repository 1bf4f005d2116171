"""Environment-driven configuration for the ingress service and the consumer.

Both processes read the same variables so the publisher and the worker agree
on the topic name without further coordination.

Usage
-----
Create a configuration with defaults:

>>> config = TidingsConfig()
>>> config.topic_name
'user-activity-events'

Or load from environment variables:

>>> import os
>>> os.environ["TIDINGS_TOPIC"] = "activity"
>>> TidingsConfig.from_env().topic_name
'activity'

"""

from __future__ import annotations

import dataclasses as dc
import os

DEFAULT_TOPIC = "user-activity-events"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///tidings.db"
DEFAULT_BROKER_URL = "redis://localhost:6379/0"
DEFAULT_HOST = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
DEFAULT_PORT = 3000
DEFAULT_STORE_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 5

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _read(env_var: str) -> str:
    return os.environ.get(env_var, "").strip()


@dc.dataclass(frozen=True, slots=True)
class TidingsConfig:
    """Settings shared by the HTTP publisher and the notification worker.

    Attributes
    ----------
    topic_name
        Queue the publisher writes to and the consumer actor listens on.
    database_url
        SQLAlchemy async URL of the notification store.
    broker_url
        Redis URL for the Dramatiq broker.
    host
        Bind address for the HTTP runtime.
    port
        Listen port for the HTTP runtime.
    log_level
        Raw log level string; normalised by :mod:`tidings.logging`.
    store_timeout_seconds
        Upper bound for each store round trip made while recording a
        delivery, including the first connection check.
    max_retries
        Redeliveries Dramatiq attempts before dead-lettering a message.

    """

    topic_name: str = DEFAULT_TOPIC
    database_url: str = DEFAULT_DATABASE_URL
    broker_url: str = DEFAULT_BROKER_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES

    @staticmethod
    def _parse_port(env_var: str, default: int) -> int:
        raw = _read(env_var)
        if not raw:
            return default
        try:
            port = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"{env_var} must be within {_MIN_PORT}-{_MAX_PORT}, got: {port}"
            raise ValueError(msg)
        return port

    @staticmethod
    def _parse_positive_float(env_var: str, default: float) -> float:
        raw = _read(env_var)
        if not raw:
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_non_negative_int(env_var: str, default: int) -> int:
        raw = _read(env_var)
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 0:
            msg = f"{env_var} must not be negative, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> TidingsConfig:
        """Create configuration from ``TIDINGS_*`` environment variables.

        Reads ``TIDINGS_TOPIC``, ``TIDINGS_DATABASE_URL``,
        ``TIDINGS_BROKER_URL``, ``TIDINGS_HOST``, ``TIDINGS_PORT``,
        ``TIDINGS_LOG_LEVEL``, ``TIDINGS_STORE_TIMEOUT_SECONDS`` and
        ``TIDINGS_MAX_RETRIES``. Blank values fall back to the defaults.

        Raises
        ------
        ValueError
            If a numeric variable cannot be parsed or is out of range.

        """
        return cls(
            topic_name=_read("TIDINGS_TOPIC") or DEFAULT_TOPIC,
            database_url=_read("TIDINGS_DATABASE_URL") or DEFAULT_DATABASE_URL,
            broker_url=_read("TIDINGS_BROKER_URL") or DEFAULT_BROKER_URL,
            host=_read("TIDINGS_HOST") or DEFAULT_HOST,
            port=cls._parse_port("TIDINGS_PORT", DEFAULT_PORT),
            log_level=_read("TIDINGS_LOG_LEVEL") or "INFO",
            store_timeout_seconds=cls._parse_positive_float(
                "TIDINGS_STORE_TIMEOUT_SECONDS", DEFAULT_STORE_TIMEOUT_SECONDS
            ),
            max_retries=cls._parse_non_negative_int(
                "TIDINGS_MAX_RETRIES", DEFAULT_MAX_RETRIES
            ),
        )


__all__ = ["DEFAULT_TOPIC", "TidingsConfig"]
