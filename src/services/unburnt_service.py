"""Service layer for unburnt entries and drafts."""
import random
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utc_now
from models.unburnt import (
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    UnburntDraft,
    UnburntEntry,
)
from services.exceptions import NotFoundError
from services.lifecycle import LifecycleStore
from services.pagination import Page, plan_page
from services.privacy_merge import DEFAULT_SAMPLE_ATTEMPTS, merge_private_sample

VISIBILITY_ALL = "all"


class UnburntService(LifecycleStore[UnburntEntry]):
    """
    Unburnt entry service.

    Extends LifecycleStore with unburnt-specific:
    - Visibility filtering for the owner's own listing
    - A public listing that mixes in one of the caller's private entries
    - Visibility toggling and server-side draft storage

    Deleted entries are never restored, so no restore window is configured.
    """

    model = UnburntEntry
    entity_name = "Unburnt entry"

    def __init__(
        self,
        rng: random.Random | None = None,
        sample_attempts: int = DEFAULT_SAMPLE_ATTEMPTS,
    ) -> None:
        super().__init__(restore_window=None)
        self.rng = rng
        self.sample_attempts = sample_attempts

    async def list_mine(
        self,
        db: AsyncSession,
        owner_id: str,
        visibility: str = VISIBILITY_ALL,
        limit: Any = None,
        cursor: str | None = None,
    ) -> Page[UnburntEntry]:
        """List the owner's active entries, optionally filtered by visibility."""
        plan = plan_page(limit, cursor, self.default_limit, self.max_limit)
        query = select(UnburntEntry).where(
            UnburntEntry.anon_user_id == owner_id,
            UnburntEntry.deleted_at.is_(None),
        )
        if visibility != VISIBILITY_ALL:
            query = query.where(UnburntEntry.visibility == visibility)
        query = plan.apply(query, UnburntEntry.created_at, UnburntEntry.id)
        rows = list((await db.execute(query)).scalars().all())
        return Page(items=rows, next_cursor=plan.next_cursor(rows))

    async def list_public(
        self,
        db: AsyncSession,
        viewer_id: str | None = None,
        limit: Any = None,
        cursor: str | None = None,
    ) -> Page[UnburntEntry]:
        """
        List public entries, newest first.

        When the viewer is known, one of their own private entries (not already on
        the page) is sorted into the page. The returned cursor always comes from
        the public-only rows so continuation pages are unaffected by the sample.
        """
        plan = plan_page(limit, cursor, self.default_limit, self.max_limit)
        query = select(UnburntEntry).where(
            UnburntEntry.deleted_at.is_(None),
            UnburntEntry.visibility == VISIBILITY_PUBLIC,
        )
        query = plan.apply(query, UnburntEntry.created_at, UnburntEntry.id)
        public_rows = list((await db.execute(query)).scalars().all())
        next_cursor = plan.next_cursor(public_rows)

        if not viewer_id:
            return Page(items=public_rows, next_cursor=next_cursor)

        private_query = select(UnburntEntry).where(
            UnburntEntry.anon_user_id == viewer_id,
            UnburntEntry.deleted_at.is_(None),
            UnburntEntry.visibility == VISIBILITY_PRIVATE,
        )

        async def pick_random() -> UnburntEntry | None:
            result = await db.execute(private_query.order_by(func.random()).limit(1))
            return result.scalar_one_or_none()

        async def load_all() -> list[UnburntEntry]:
            return list((await db.execute(private_query)).scalars().all())

        items = await merge_private_sample(
            public_rows,
            plan.limit,
            pick_random,
            load_all,
            rng=self.rng,
            attempts=self.sample_attempts,
        )
        return Page(items=items, next_cursor=next_cursor)

    async def get_mine(self, db: AsyncSession, owner_id: str, entry_id: str) -> UnburntEntry:
        """
        Get one of the owner's active entries, whatever its visibility.

        Raises:
            NotFoundError: If the owner has no such active entry.
        """
        entry = await self.get_active(db, owner_id, entry_id)
        if entry is None:
            raise NotFoundError(self.entity_name)
        return entry

    async def get_public(self, db: AsyncSession, entry_id: str) -> UnburntEntry:
        """
        Get an active public entry.

        Raises:
            NotFoundError: If the entry does not exist, is deleted, or is private.
        """
        result = await db.execute(
            select(UnburntEntry).where(
                UnburntEntry.id == entry_id,
                UnburntEntry.deleted_at.is_(None),
                UnburntEntry.visibility == VISIBILITY_PUBLIC,
            ),
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError(self.entity_name)
        return entry

    async def set_visibility(
        self,
        db: AsyncSession,
        owner_id: str,
        entry_id: str,
        visibility: str,
        now: datetime | None = None,
    ) -> UnburntEntry:
        """
        Change an active entry's visibility.

        Raises:
            NotFoundError: If the owner has no such active entry.
        """
        if now is None:
            now = utc_now()
        result = await db.execute(
            update(UnburntEntry)
            .where(
                UnburntEntry.id == entry_id,
                UnburntEntry.anon_user_id == owner_id,
                UnburntEntry.deleted_at.is_(None),
            )
            .values(visibility=visibility, updated_at=now)
        )
        if not result.rowcount:
            raise NotFoundError(self.entity_name)
        entry = await self.get_mine(db, owner_id, entry_id)
        await db.refresh(entry)
        return entry

    # --- Drafts ---

    async def get_draft(self, db: AsyncSession, owner_id: str) -> UnburntDraft | None:
        """Get the owner's stored draft, if any."""
        return await db.get(UnburntDraft, owner_id)

    async def save_draft(
        self,
        db: AsyncSession,
        owner_id: str,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> UnburntDraft:
        """Insert or replace the owner's draft."""
        if now is None:
            now = utc_now()
        draft = await db.get(UnburntDraft, owner_id)
        if draft is None:
            draft = UnburntDraft(
                anon_user_id=owner_id,
                payload=payload,
                created_at=now,
                updated_at=now,
            )
            db.add(draft)
        else:
            draft.payload = payload
            draft.updated_at = now
        await db.flush()
        return draft

    async def delete_draft(self, db: AsyncSession, owner_id: str) -> None:
        """Delete the owner's draft. Deleting a missing draft is a no-op."""
        draft = await db.get(UnburntDraft, owner_id)
        if draft is not None:
            await db.delete(draft)
            await db.flush()


def get_unburnt_service() -> UnburntService:
    """Build the unburnt service."""
    return UnburntService()
