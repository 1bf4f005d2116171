"""Idempotent recording of deliveries as notification records.

The consumer may see the same delivery more than once, possibly at the same
time on different worker threads. :class:`NotificationRecorder` looks the
delivery id up first so ordinary redeliveries are cheap no-ops, and relies on
the table's unique constraint to settle true races: the losing insert raises
``IntegrityError``, is rolled back, and resolves to the same outcome as a
skip. Everything else propagates so Dramatiq stays the single place where
retries happen.
"""

from __future__ import annotations

import asyncio
import enum
import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tidings.common.time import parse_iso_timestamp, utcnow
from tidings.config import DEFAULT_STORE_TIMEOUT_SECONDS
from tidings.events.codec import decode_delivery
from tidings.notifications.connection import connect_store
from tidings.notifications.errors import (
    NotificationPersistError,
    StoreTimeoutError,
)
from tidings.notifications.observability import NotificationEventLogger
from tidings.notifications.storage import NotificationRecord, NotificationStatus

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tidings.events.models import ActivityEvent, Delivery

__all__ = [
    "DeliveryOutcome",
    "NotificationRecorder",
    "notification_message",
    "process_delivery",
    "resolve_event_timestamp",
]


class DeliveryOutcome(enum.StrEnum):
    """How a delivery attempt completed."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"

    @property
    def wrote_record(self) -> bool:
        """Return True only when this attempt inserted the record."""
        return self is DeliveryOutcome.PROCESSED


def notification_message(event: ActivityEvent) -> str:
    """Return the simulated push notification text for *event*."""
    return (
        f"Simulating push notification for user [{event.user_id}] "
        f"about event [{event.event_type}]"
    )


def resolve_event_timestamp(
    event: ActivityEvent, *, fallback: dt.datetime | None = None
) -> dt.datetime:
    """Return when the activity happened.

    Uses ``payload["timestamp"]`` when it holds an ISO-8601 string and the
    processing time otherwise.
    """
    parsed = parse_iso_timestamp(event.payload.get("timestamp"))
    if parsed is not None:
        return parsed
    return fallback or utcnow()


class NotificationRecorder:
    """Write at most one notification record per delivery id."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
        event_logger: NotificationEventLogger | None = None,
    ) -> None:
        """Store the session factory and the bound applied to store work."""
        self._session_factory = session_factory
        self._timeout = timeout
        self._event_logger = event_logger or NotificationEventLogger()

    async def record(self, delivery_id: str, event: ActivityEvent) -> DeliveryOutcome:
        """Persist *event* under *delivery_id* unless it is already recorded.

        Parameters
        ----------
        delivery_id
            Channel-assigned delivery identifier; the idempotency key.
        event
            Decoded activity event.

        Returns
        -------
        DeliveryOutcome
            ``PROCESSED`` when this call wrote the record, ``SKIPPED`` when the
            lookup found an earlier record, ``DUPLICATE`` when a concurrent
            attempt won the insert race.

        Raises
        ------
        StoreTimeoutError
            If the store work does not finish within the configured timeout.
        NotificationPersistError
            If the insert conflicts but no existing row can be read back.

        """
        try:
            async with asyncio.timeout(self._timeout):
                return await self._record(delivery_id, event)
        except TimeoutError as exc:
            raise StoreTimeoutError(delivery_id, self._timeout) from exc

    async def _record(self, delivery_id: str, event: ActivityEvent) -> DeliveryOutcome:
        async with self._session_factory() as session:
            if await self._find(session, delivery_id) is not None:
                return DeliveryOutcome.SKIPPED

            message = notification_message(event)
            self._event_logger.log_notification_simulated(
                delivery_id=delivery_id, event=event, message=message
            )
            session.add(
                NotificationRecord(
                    delivery_id=delivery_id,
                    user_id=event.user_id,
                    event_type=event.event_type,
                    payload=dict(event.payload),
                    event_timestamp=resolve_event_timestamp(event),
                    status=NotificationStatus.PROCESSED.value,
                    message=message,
                )
            )

            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if await self._find(session, delivery_id) is None:
                    raise NotificationPersistError(delivery_id) from exc
                return DeliveryOutcome.DUPLICATE

            return DeliveryOutcome.PROCESSED

    @staticmethod
    async def _find(session: AsyncSession, delivery_id: str) -> int | None:
        stmt = select(NotificationRecord.id).where(
            NotificationRecord.delivery_id == delivery_id
        )
        return await session.scalar(stmt)


async def process_delivery(
    delivery: Delivery,
    *,
    database_url: str,
    timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    event_logger: NotificationEventLogger | None = None,
) -> DeliveryOutcome:
    """Decode, deduplicate and persist one delivery attempt.

    Every failure is logged and re-raised; nothing is retried here.

    Raises
    ------
    EventDecodeError
        If the payload is malformed. Nothing is written.
    StoreConnectionError
        If the store cannot be reached. Nothing is written.

    """
    events = event_logger or NotificationEventLogger()
    events.log_delivery_received(delivery_id=delivery.delivery_id)
    try:
        event = decode_delivery(delivery.data)
        session_factory = await connect_store(database_url, timeout=timeout)
        recorder = NotificationRecorder(
            session_factory, timeout=timeout, event_logger=events
        )
        outcome = await recorder.record(delivery.delivery_id, event)
    except Exception as exc:
        events.log_delivery_failed(delivery_id=delivery.delivery_id, exc=exc)
        raise

    events.log_delivery_completed(delivery_id=delivery.delivery_id, outcome=outcome)
    return outcome
