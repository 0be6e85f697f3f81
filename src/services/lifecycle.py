"""
Base service for soft-deletable, owner-scoped records.

Provides shared logic for onward notes and unburnt entries:

- cursor-paginated listing of active and recycled records
- soft delete and restore within a restore window
- an opportunistic reaper that permanently deletes records whose restore window
  has elapsed, run at the start of every operation
- an optional "latest item only" edit rule

All writes are single conditional statements scoped by (id, owner, state) and
checked through their affected-row count, so concurrent requests from the same
owner can never corrupt state; the loser simply observes NotFoundError.
"""
import logging
from abc import ABC
from datetime import datetime, timedelta
from typing import Any, Generic, Protocol, TypeVar

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from models.base import ensure_utc, utc_now
from services.exceptions import EditConflictError, NotFoundError, RestoreExpiredError
from services.pagination import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, Page, plan_page

logger = logging.getLogger(__name__)


class SoftDeletableEntity(Protocol):
    """Protocol defining the columns the lifecycle operations rely on."""

    id: str
    anon_user_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


T = TypeVar("T", bound=SoftDeletableEntity)


class LifecycleStore(ABC, Generic[T]):
    """
    Abstract base class for soft-delete lifecycle operations.

    Subclasses must define:
    - model: The SQLAlchemy model class
    - entity_name: Human-readable name for error messages (e.g., "Onward item")

    Subclasses may set:
    - latest_only_edits: Only the owner's newest active record may be updated
    - default_limit / max_limit: Page size bounds for listings

    A restore_window of None disables expiry: recycled records are kept
    indefinitely and the reaper is a no-op.
    """

    model: type[T]
    entity_name: str
    latest_only_edits: bool = False
    default_limit: int = DEFAULT_QUERY_LIMIT
    max_limit: int = MAX_QUERY_LIMIT

    def __init__(self, restore_window: timedelta | None = None) -> None:
        self.restore_window = restore_window

    # --- Helper Methods ---

    def _expiry_cutoff(self, now: datetime) -> datetime | None:
        """Records deleted strictly before this instant are past their restore deadline."""
        if self.restore_window is None:
            return None
        return now - self.restore_window

    def _exclude_expired(self, query: Select, now: datetime) -> Select:
        """Hide recycled rows the reaper has not purged yet."""
        cutoff = self._expiry_cutoff(now)
        if cutoff is None:
            return query
        return query.where(
            or_(self.model.deleted_at.is_(None), self.model.deleted_at >= cutoff),
        )

    def restore_deadline(self, entity: T) -> datetime | None:
        """When a recycled record stops being restorable (None if active or no expiry)."""
        if entity.deleted_at is None or self.restore_window is None:
            return None
        return ensure_utc(entity.deleted_at) + self.restore_window

    # --- Reaper ---

    async def reap_expired(self, db: AsyncSession, now: datetime | None = None) -> int:
        """
        Permanently delete every recycled record (any owner) past its restore window.

        A single bulk DELETE; idempotent and safe to run concurrently. Committed
        immediately so purges survive a later failure in the same request.

        Returns:
            Number of records purged.
        """
        if now is None:
            now = utc_now()
        cutoff = self._expiry_cutoff(now)
        if cutoff is None:
            return 0

        result = await db.execute(
            delete(self.model).where(
                self.model.deleted_at.is_not(None),
                self.model.deleted_at < cutoff,
            ),
        )
        purged = result.rowcount or 0
        if purged > 0:
            await db.commit()
            logger.info(
                "Purged %d expired %s record(s) (deleted before %s)",
                purged,
                self.model.__tablename__,
                cutoff.isoformat(),
            )
        return purged

    # --- Reads ---

    async def get_active(
        self,
        db: AsyncSession,
        owner_id: str,
        entity_id: str,
    ) -> T | None:
        """Get an active record by id, scoped to its owner."""
        result = await db.execute(
            select(self.model).where(
                self.model.id == entity_id,
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_(None),
            ),
        )
        return result.scalar_one_or_none()

    async def get_latest_active_id(self, db: AsyncSession, owner_id: str) -> str | None:
        """Id of the owner's newest active record, using the listing order."""
        result = await db.execute(
            select(self.model.id)
            .where(
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_(None),
            )
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(1),
        )
        return result.scalar_one_or_none()

    async def list_active(
        self,
        db: AsyncSession,
        owner_id: str,
        limit: Any = None,
        cursor: str | None = None,
        now: datetime | None = None,
    ) -> Page[T]:
        """List the owner's active records, newest first."""
        if now is None:
            now = utc_now()
        await self.reap_expired(db, now)

        plan = plan_page(limit, cursor, self.default_limit, self.max_limit)
        query = select(self.model).where(
            self.model.anon_user_id == owner_id,
            self.model.deleted_at.is_(None),
        )
        query = plan.apply(query, self.model.created_at, self.model.id)
        rows = list((await db.execute(query)).scalars().all())
        return Page(items=rows, next_cursor=plan.next_cursor(rows))

    async def list_recycled(
        self,
        db: AsyncSession,
        owner_id: str,
        limit: Any = None,
        cursor: str | None = None,
        now: datetime | None = None,
    ) -> Page[T]:
        """List the owner's restorable records, most recently deleted first."""
        if now is None:
            now = utc_now()
        await self.reap_expired(db, now)

        plan = plan_page(limit, cursor, self.default_limit, self.max_limit)
        query = select(self.model).where(
            self.model.anon_user_id == owner_id,
            self.model.deleted_at.is_not(None),
        )
        query = self._exclude_expired(query, now)
        query = plan.apply(query, self.model.deleted_at, self.model.id)
        rows = list((await db.execute(query)).scalars().all())
        return Page(items=rows, next_cursor=plan.next_cursor(rows, sort_attr="deleted_at"))

    # --- Writes ---

    async def create(
        self,
        db: AsyncSession,
        owner_id: str,
        values: dict[str, Any],
        now: datetime | None = None,
    ) -> T:
        """
        Insert a new active record.

        Existing active records of the owner are left untouched; the latest-only rule
        is enforced at edit time, not at creation time.
        """
        if now is None:
            now = utc_now()
        await self.reap_expired(db, now)

        entity = self.model(
            anon_user_id=owner_id,
            created_at=now,
            updated_at=now,
            deleted_at=None,
            **values,
        )
        db.add(entity)
        await db.flush()
        return entity

    async def update(
        self,
        db: AsyncSession,
        owner_id: str,
        entity_id: str,
        values: dict[str, Any],
        now: datetime | None = None,
    ) -> T:
        """
        Update an active record.

        Raises:
            NotFoundError: If no active record matches (owner_id, entity_id).
            EditConflictError: If latest_only_edits is set and the record is not the
                owner's newest active record.
        """
        if now is None:
            now = utc_now()
        await self.reap_expired(db, now)

        entity = await self.get_active(db, owner_id, entity_id)
        if entity is None:
            raise NotFoundError(self.entity_name)

        if self.latest_only_edits:
            latest_id = await self.get_latest_active_id(db, owner_id)
            if latest_id != entity_id:
                raise EditConflictError(self.entity_name)

        result = await db.execute(
            update(self.model)
            .where(
                self.model.id == entity_id,
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_(None),
            )
            .values(updated_at=now, **values)
        )
        if not result.rowcount:
            raise NotFoundError(self.entity_name)

        await db.refresh(entity)
        return entity

    async def soft_delete(
        self,
        db: AsyncSession,
        owner_id: str,
        entity_id: str,
        now: datetime | None = None,
    ) -> None:
        """
        Move an active record to the recycle state.

        Raises:
            NotFoundError: If no active record matches (owner_id, entity_id).
        """
        if now is None:
            now = utc_now()
        await self.reap_expired(db, now)

        result = await db.execute(
            update(self.model)
            .where(
                self.model.id == entity_id,
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_(None),
            )
            .values(deleted_at=now, updated_at=now)
        )
        if not result.rowcount:
            raise NotFoundError(self.entity_name)

    async def restore(
        self,
        db: AsyncSession,
        owner_id: str,
        entity_id: str,
        now: datetime | None = None,
    ) -> T:
        """
        Restore a recycled record to the active state.

        The target is inspected before the sweep so an expired record reports
        RestoreExpiredError rather than silently disappearing as NotFoundError.

        Raises:
            NotFoundError: If no recycled record matches (owner_id, entity_id).
            RestoreExpiredError: If the restore window elapsed; the record is
                permanently deleted (and committed) before raising.
        """
        if now is None:
            now = utc_now()

        result = await db.execute(
            select(self.model).where(
                self.model.id == entity_id,
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_not(None),
            ),
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            await self.reap_expired(db, now)
            raise NotFoundError(self.entity_name)

        deadline = self.restore_deadline(entity)
        if deadline is not None and now > deadline:
            await db.execute(
                delete(self.model).where(
                    self.model.id == entity_id,
                    self.model.anon_user_id == owner_id,
                ),
            )
            await db.commit()
            await self.reap_expired(db, now)
            raise RestoreExpiredError(self.entity_name)

        await self.reap_expired(db, now)

        result = await db.execute(
            update(self.model)
            .where(
                self.model.id == entity_id,
                self.model.anon_user_id == owner_id,
                self.model.deleted_at.is_not(None),
            )
            .values(deleted_at=None, updated_at=now)
        )
        if not result.rowcount:
            raise NotFoundError(self.entity_name)

        await db.refresh(entity)
        return entity
