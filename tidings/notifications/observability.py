"""Structured log events for the notification consumer.

Each delivery emits a ``received`` event followed by exactly one of
``processed``, ``skipped`` or ``failed``. Failures carry an error category so
log-based alerts can tell malformed payloads apart from store outages.

Usage
-----
>>> event_logger = NotificationEventLogger()
>>> event_logger.log_delivery_received(delivery_id="d-1")

"""

from __future__ import annotations

import enum
import typing as typ

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from tidings.events.errors import EventDecodeError
from tidings.logging import get_logger, log_error, log_info

from .errors import StoreConnectionError, StoreTimeoutError

if typ.TYPE_CHECKING:
    from tidings.events.models import ActivityEvent

    from .services import DeliveryOutcome

logger = get_logger(__name__)


class NotificationEventType(enum.StrEnum):
    """Structured log event types for delivery processing."""

    DELIVERY_RECEIVED = "notifications.delivery.received"
    NOTIFICATION_SIMULATED = "notifications.notification.simulated"
    DELIVERY_PROCESSED = "notifications.delivery.processed"
    DELIVERY_SKIPPED = "notifications.delivery.skipped"
    DELIVERY_FAILED = "notifications.delivery.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    MALFORMED_PAYLOAD = "malformed_payload"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATABASE_TIMEOUT = "database_timeout"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (EventDecodeError, ErrorCategory.MALFORMED_PAYLOAD),
    (StoreConnectionError, ErrorCategory.DATABASE_CONNECTIVITY),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (StoreTimeoutError, ErrorCategory.DATABASE_TIMEOUT),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize a processing failure for alert routing."""
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


class NotificationEventLogger:
    """Emit structured delivery events via femtologging."""

    def log_delivery_received(self, *, delivery_id: str) -> None:
        """Log that a delivery attempt started."""
        log_info(
            logger,
            "[%s] delivery_id=%s",
            NotificationEventType.DELIVERY_RECEIVED,
            delivery_id,
        )

    def log_notification_simulated(
        self, *, delivery_id: str, event: ActivityEvent, message: str
    ) -> None:
        """Log the simulated push notification for a new delivery."""
        log_info(
            logger,
            "[%s] delivery_id=%s user_id=%s event_type=%s message=%s",
            NotificationEventType.NOTIFICATION_SIMULATED,
            delivery_id,
            event.user_id,
            event.event_type,
            message,
        )

    def log_delivery_completed(
        self, *, delivery_id: str, outcome: DeliveryOutcome
    ) -> None:
        """Log a successful delivery, distinguishing new rows from skips.

        Parameters
        ----------
        delivery_id
            Channel-assigned delivery identifier.
        outcome
            ``processed`` when a record was written; ``skipped`` or
            ``duplicate`` when an earlier attempt had already written it.

        """
        event_type = (
            NotificationEventType.DELIVERY_PROCESSED
            if outcome.wrote_record
            else NotificationEventType.DELIVERY_SKIPPED
        )
        log_info(
            logger,
            "[%s] delivery_id=%s outcome=%s",
            event_type,
            delivery_id,
            outcome,
        )

    def log_delivery_failed(self, *, delivery_id: str, exc: BaseException) -> None:
        """Log a failed delivery with its error category and traceback."""
        log_error(
            logger,
            "[%s] delivery_id=%s error_category=%s error_type=%s error=%s",
            NotificationEventType.DELIVERY_FAILED,
            delivery_id,
            categorize_error(exc),
            type(exc).__name__,
            exc,
            exc_info=exc,
        )
