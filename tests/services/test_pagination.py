"""Tests for keyset pagination."""
import math
from types import SimpleNamespace
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.ember import Ember
from services.cursor import decode_cursor, encode_cursor
from services.pagination import (
    DEFAULT_QUERY_LIMIT,
    MAX_QUERY_LIMIT,
    PagePlan,
    normalize_limit,
    plan_page,
)
from services.post_service import ember_service

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize(
    ("requested", "expected"),
    [
        (None, DEFAULT_QUERY_LIMIT),
        ("", DEFAULT_QUERY_LIMIT),
        ("abc", DEFAULT_QUERY_LIMIT),
        ("nan", DEFAULT_QUERY_LIMIT),
        ("inf", DEFAULT_QUERY_LIMIT),
        (math.inf, DEFAULT_QUERY_LIMIT),
        (True, DEFAULT_QUERY_LIMIT),
        ("0", 1),
        ("-5", 1),
        ("0.5", 1),
        ("7", 7),
        ("7.9", 7),
        (12, 12),
        ("50", MAX_QUERY_LIMIT),
        ("51", MAX_QUERY_LIMIT),
        ("1e6", MAX_QUERY_LIMIT),
    ],
)
def test__normalize_limit__clamps_and_defaults(requested: object, expected: int) -> None:
    assert normalize_limit(requested) == expected


def test__normalize_limit__custom_bounds() -> None:
    assert normalize_limit(None, default_limit=5, max_limit=10) == 5
    assert normalize_limit("99", default_limit=5, max_limit=10) == 10


def test__plan_page__ignores_bad_cursor() -> None:
    plan = plan_page("3", "garbage")
    assert plan == PagePlan(limit=3, cursor=None)


def test__next_cursor__empty_page_has_no_cursor() -> None:
    assert PagePlan(limit=5).next_cursor([]) is None


def test__next_cursor__short_page_has_no_cursor() -> None:
    row = SimpleNamespace(id="e1", created_at=datetime(2025, 1, 1, tzinfo=UTC))
    assert PagePlan(limit=2).next_cursor([row]) is None
    assert decode_cursor(PagePlan(limit=1).next_cursor([row])) == (row.created_at, "e1")


async def _seed_embers(db: AsyncSession, count: int) -> list[Ember]:
    embers = [
        Ember(
            id=f"e{i}",
            anon_user_id="visitor",
            display_name="name",
            message=f"message {i}",
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        for i in range(1, count + 1)
    ]
    db.add_all(embers)
    await db.flush()
    return embers


async def test__list_posts__walks_pages_newest_first(db_session: AsyncSession) -> None:
    """Five rows e1..e5 with limit 2: [e5, e4], [e3, e2], [e1]."""
    await _seed_embers(db_session, 5)

    first = await ember_service.list_posts(db_session, limit="2")
    assert [e.id for e in first.items] == ["e5", "e4"]
    assert first.next_cursor is not None

    second = await ember_service.list_posts(db_session, limit="2", cursor=first.next_cursor)
    assert [e.id for e in second.items] == ["e3", "e2"]

    third = await ember_service.list_posts(db_session, limit="2", cursor=second.next_cursor)
    assert [e.id for e in third.items] == ["e1"]
    assert third.next_cursor is None


async def test__list_posts__full_last_page_then_empty_page(db_session: AsyncSession) -> None:
    await _seed_embers(db_session, 4)

    first = await ember_service.list_posts(db_session, limit=2)
    second = await ember_service.list_posts(db_session, limit=2, cursor=first.next_cursor)
    assert [e.id for e in second.items] == ["e2", "e1"]
    assert second.next_cursor is not None

    third = await ember_service.list_posts(db_session, limit=2, cursor=second.next_cursor)
    assert third.items == []
    assert third.next_cursor is None


async def test__list_posts__equal_timestamps_break_ties_by_id(db_session: AsyncSession) -> None:
    db_session.add_all(
        Ember(
            id=entity_id,
            anon_user_id="visitor",
            display_name="name",
            message="same time",
            created_at=BASE_TIME,
        )
        for entity_id in ("a", "c", "b")
    )
    await db_session.flush()

    first = await ember_service.list_posts(db_session, limit=2)
    assert [e.id for e in first.items] == ["c", "b"]

    cursor = decode_cursor(first.next_cursor)
    assert cursor is not None
    assert cursor.id == "b"

    second = await ember_service.list_posts(db_session, limit=2, cursor=first.next_cursor)
    assert [e.id for e in second.items] == ["a"]


async def test__list_posts__inserts_between_requests_do_not_shift_pages(
    db_session: AsyncSession,
) -> None:
    await _seed_embers(db_session, 4)
    first = await ember_service.list_posts(db_session, limit=2)

    db_session.add(
        Ember(
            id="e9",
            anon_user_id="visitor",
            display_name="name",
            message="newer",
            created_at=BASE_TIME + timedelta(hours=1),
        ),
    )
    await db_session.flush()

    second = await ember_service.list_posts(db_session, limit=2, cursor=first.next_cursor)
    assert [e.id for e in second.items] == ["e2", "e1"]


async def test__list_posts__malformed_cursor_restarts_listing(db_session: AsyncSession) -> None:
    await _seed_embers(db_session, 3)
    page = await ember_service.list_posts(db_session, limit=2, cursor="%%%")
    assert [e.id for e in page.items] == ["e3", "e2"]


async def test__list_posts__cursor_past_the_end_returns_empty(db_session: AsyncSession) -> None:
    await _seed_embers(db_session, 2)
    cursor = encode_cursor(BASE_TIME - timedelta(days=1), "zzz")
    page = await ember_service.list_posts(db_session, cursor=cursor)
    assert page.items == []
    assert page.next_cursor is None
