"""Persistence model for processed notification records."""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ

from sqlalchemy import JSON, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tidings.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class NotificationStatus(enum.StrEnum):
    """Lifecycle of a notification record.

    A delivery is either unseen (no row) or processed. There is no update
    path, so ``PROCESSED`` is both the only and the terminal state.
    """

    PROCESSED = "processed"


class Base(DeclarativeBase):
    """Base declarative class for notification models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Store naive values as UTC and convert aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class NotificationRecord(Base):
    """Immutable outcome of processing one delivery.

    ``delivery_id`` carries a storage-level unique constraint: it is the only
    thing standing between two concurrent redeliveries and a duplicate row.
    """

    __tablename__ = "notification_records"
    __table_args__ = (
        UniqueConstraint("delivery_id", name="uq_notification_delivery_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    delivery_id: Mapped[str] = mapped_column(String(255))
    # Caller-supplied strings have no length limit at ingress.
    user_id: Mapped[str] = mapped_column(Text())
    event_type: Mapped[str] = mapped_column(Text())
    payload: Mapped[dict[str, typ.Any]] = mapped_column(JSON)
    event_timestamp: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    status: Mapped[str] = mapped_column(
        String(32), default=NotificationStatus.PROCESSED.value
    )
    message: Mapped[str] = mapped_column(Text())
    processed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_notification_storage(engine: AsyncEngine) -> None:
    """Create the notification tables and constraints if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
