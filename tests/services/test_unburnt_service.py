"""Tests for the unburnt service."""
import random
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.unburnt import UnburntEntry
from services.exceptions import NotFoundError
from services.unburnt_service import UnburntService

OWNER = "owner-1"
VIEWER = "viewer-1"
T0 = datetime(2024, 2, 1, tzinfo=UTC)


@pytest.fixture
def service() -> UnburntService:
    return UnburntService(rng=random.Random(7))


def entry_values(title: str, visibility: str = "private", **overrides: Any) -> dict[str, Any]:
    values = {
        "title": title,
        "summary": "",
        "raw_text": f"user: {title}",
        "messages": [{"role": "user", "content": title, "order": 1}],
        "tags": [],
        "visibility": visibility,
    }
    values.update(overrides)
    return values


async def make_entry(
    db: AsyncSession,
    service: UnburntService,
    owner: str,
    title: str,
    visibility: str = "private",
    minutes: int = 0,
) -> UnburntEntry:
    return await service.create(
        db, owner, entry_values(title, visibility), now=T0 + timedelta(minutes=minutes),
    )


class TestOwnerListing:
    async def test__list_mine__filters_by_visibility(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        private = await make_entry(db_session, service, OWNER, "private", "private", 1)
        public = await make_entry(db_session, service, OWNER, "public", "public", 2)
        await make_entry(db_session, service, VIEWER, "someone else", "public", 3)

        everything = await service.list_mine(db_session, OWNER)
        assert [e.id for e in everything.items] == [public.id, private.id]

        only_private = await service.list_mine(db_session, OWNER, visibility="private")
        assert [e.id for e in only_private.items] == [private.id]

        only_public = await service.list_mine(db_session, OWNER, visibility="public")
        assert [e.id for e in only_public.items] == [public.id]

    async def test__list_mine__excludes_deleted(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "gone")
        await service.soft_delete(db_session, OWNER, entry.id, now=T0)

        page = await service.list_mine(db_session, OWNER)
        assert page.items == []


class TestPublicListing:
    async def test__list_public__anonymous_sees_only_public(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        public = await make_entry(db_session, service, OWNER, "public", "public", 1)
        await make_entry(db_session, service, OWNER, "private", "private", 2)

        page = await service.list_public(db_session)
        assert [e.id for e in page.items] == [public.id]

    async def test__list_public__mixes_in_one_of_viewers_private_entries(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        public = await make_entry(db_session, service, OWNER, "public", "public", 1)
        mine = await make_entry(db_session, service, VIEWER, "mine", "private", 2)
        await make_entry(db_session, service, OWNER, "owner private", "private", 3)

        page = await service.list_public(db_session, viewer_id=VIEWER)
        assert [e.id for e in page.items] == [mine.id, public.id]

    async def test__list_public__at_most_one_private_entry(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        await make_entry(db_session, service, OWNER, "public", "public", 1)
        for minute in range(2, 6):
            await make_entry(db_session, service, VIEWER, f"mine {minute}", "private", minute)

        page = await service.list_public(db_session, viewer_id=VIEWER)
        private_items = [e for e in page.items if e.visibility == "private"]
        assert len(private_items) == 1
        assert len(page.items) == 2

    async def test__list_public__cursor_comes_from_public_rows(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        for minute in range(1, 4):
            await make_entry(db_session, service, OWNER, f"public {minute}", "public", minute)
        await make_entry(db_session, service, VIEWER, "mine", "private", 10)

        anonymous = await service.list_public(db_session, limit=2)
        as_viewer = await service.list_public(db_session, viewer_id=VIEWER, limit=2)

        assert as_viewer.next_cursor == anonymous.next_cursor
        assert as_viewer.items[0].title == "mine"
        assert len(as_viewer.items) == 2

        rest = await service.list_public(db_session, limit=2, cursor=anonymous.next_cursor)
        assert [e.title for e in rest.items] == ["public 1"]

    async def test__list_public__deleted_private_entries_are_never_sampled(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        await make_entry(db_session, service, OWNER, "public", "public", 1)
        mine = await make_entry(db_session, service, VIEWER, "mine", "private", 2)
        await service.soft_delete(db_session, VIEWER, mine.id, now=T0)

        page = await service.list_public(db_session, viewer_id=VIEWER)
        assert [e.title for e in page.items] == ["public"]


class TestDetailAndVisibility:
    async def test__get_public__private_entry_is_not_found(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "private")

        with pytest.raises(NotFoundError):
            await service.get_public(db_session, entry.id)

    async def test__get_mine__other_owner_is_not_found(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "mine")

        assert (await service.get_mine(db_session, OWNER, entry.id)).id == entry.id
        with pytest.raises(NotFoundError):
            await service.get_mine(db_session, VIEWER, entry.id)

    async def test__set_visibility__publishes_entry(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "mine")
        changed_at = T0 + timedelta(hours=1)

        updated = await service.set_visibility(
            db_session, OWNER, entry.id, "public", now=changed_at,
        )

        assert updated.visibility == "public"
        assert updated.updated_at == changed_at
        assert (await service.get_public(db_session, entry.id)).id == entry.id

    async def test__set_visibility__other_owner_is_not_found(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "mine")

        with pytest.raises(NotFoundError):
            await service.set_visibility(db_session, VIEWER, entry.id, "public")

    async def test__update__changes_only_given_fields(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "before")

        updated = await service.update(
            db_session, OWNER, entry.id, {"summary": "now with summary"},
            now=T0 + timedelta(minutes=5),
        )

        assert updated.title == "before"
        assert updated.summary == "now with summary"

    async def test__delete__is_permanent_soft_delete(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        entry = await make_entry(db_session, service, OWNER, "gone", "public")
        await service.soft_delete(db_session, OWNER, entry.id, now=T0)

        with pytest.raises(NotFoundError):
            await service.get_public(db_session, entry.id)
        assert service.restore_deadline(entry) is None
        assert await service.reap_expired(db_session, now=T0 + timedelta(days=365)) == 0


class TestDrafts:
    async def test__save_draft__inserts_then_replaces(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        assert await service.get_draft(db_session, OWNER) is None

        await service.save_draft(db_session, OWNER, {"raw_text": "one"}, now=T0)
        await service.save_draft(
            db_session, OWNER, {"raw_text": "two"}, now=T0 + timedelta(minutes=1),
        )

        draft = await service.get_draft(db_session, OWNER)
        assert draft is not None
        assert draft.payload == {"raw_text": "two"}
        assert draft.created_at == T0
        assert draft.updated_at == T0 + timedelta(minutes=1)

    async def test__delete_draft__missing_draft_is_noop(
        self, db_session: AsyncSession, service: UnburntService,
    ) -> None:
        await service.delete_draft(db_session, OWNER)

        await service.save_draft(db_session, OWNER, {"raw_text": "one"})
        await service.delete_draft(db_session, OWNER)
        assert await service.get_draft(db_session, OWNER) is None
