"""SQLAlchemy declarative base with common mixins."""
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Random identifier for listable records (string-comparable, not time-ordered)."""
    return str(uuid4())


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive datetimes are assumed to already be UTC (SQLite returns naive values).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp column.

    PostgreSQL stores TIMESTAMP WITH TIME ZONE; SQLite stores naive text. Values are
    converted to UTC before binding so both backends compare and sort consistently,
    and are always returned timezone-aware.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class ListableMixin:
    """
    Columns shared by every record served through cursor pagination.

    Rows are ordered by (created_at DESC, id DESC); ids are random UUID strings so
    the id tiebreak is deterministic but carries no meaning.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    anon_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, index=True,
    )


class SoftDeleteMixin:
    """Adds updated_at and the soft-delete marker (NULL means active)."""

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True, default=None, index=True,
    )

    @property
    def is_deleted(self) -> bool:
        """Check if the record is in the recycle state."""
        return self.deleted_at is not None
