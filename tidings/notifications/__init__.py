"""Idempotent consumer: turns deliveries into notification records.

The Dramatiq actor lives in :mod:`tidings.notifications.actor` and is not
imported here, so importing this package never configures a broker.
"""

from __future__ import annotations

from .connection import connect_store, dispose_store_connections
from .errors import (
    MissingDeliveryIdError,
    NotificationError,
    NotificationPersistError,
    StoreConnectionError,
    StoreTimeoutError,
)
from .observability import ErrorCategory, NotificationEventLogger, categorize_error
from .services import (
    DeliveryOutcome,
    NotificationRecorder,
    notification_message,
    process_delivery,
    resolve_event_timestamp,
)
from .storage import NotificationRecord, NotificationStatus, init_notification_storage

__all__ = [
    "DeliveryOutcome",
    "ErrorCategory",
    "MissingDeliveryIdError",
    "NotificationError",
    "NotificationEventLogger",
    "NotificationPersistError",
    "NotificationRecord",
    "NotificationRecorder",
    "NotificationStatus",
    "StoreConnectionError",
    "StoreTimeoutError",
    "categorize_error",
    "connect_store",
    "dispose_store_connections",
    "init_notification_storage",
    "notification_message",
    "process_delivery",
    "resolve_event_timestamp",
]
