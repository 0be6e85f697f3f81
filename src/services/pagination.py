"""
Keyset pagination shared by every listing endpoint.

Pages are ordered by (sort_column DESC, id DESC) and continued with an opaque
cursor naming the last row seen, so inserts between requests never shift rows
across page boundaries the way offset pagination does.
"""
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import and_, or_
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql import Select

from services.cursor import Cursor, decode_cursor, encode_cursor

DEFAULT_QUERY_LIMIT = 20
MAX_QUERY_LIMIT = 50

S = TypeVar("S", bound=Select)


def normalize_limit(
    requested: Any,
    default_limit: int = DEFAULT_QUERY_LIMIT,
    max_limit: int = MAX_QUERY_LIMIT,
) -> int:
    """
    Clamp a requested page size into [1, max_limit].

    Missing, non-numeric, and non-finite values fall back to default_limit;
    fractional values are floored.
    """
    if requested is None or isinstance(requested, bool):
        return default_limit
    try:
        value = float(requested)
    except (TypeError, ValueError):
        return default_limit
    if not math.isfinite(value):
        return default_limit

    rounded = math.floor(value)
    if rounded < 1:
        return 1
    if rounded > max_limit:
        return max_limit
    return rounded


@dataclass(frozen=True)
class PagePlan:
    """Bounds for one page: the clamped limit and the optional continuation cursor."""

    limit: int
    cursor: Cursor | None = None

    def apply(
        self,
        query: S,
        sort_column: InstrumentedAttribute,
        id_column: InstrumentedAttribute,
    ) -> S:
        """Add the cursor bound, descending order, and limit to a select."""
        if self.cursor is not None:
            query = query.where(
                or_(
                    sort_column < self.cursor.sort_key,
                    and_(
                        sort_column == self.cursor.sort_key,
                        id_column < self.cursor.id,
                    ),
                ),
            )
        return query.order_by(sort_column.desc(), id_column.desc()).limit(self.limit)

    def next_cursor(self, rows: Sequence[Any], sort_attr: str = "created_at") -> str | None:
        """Cursor for the page after `rows`, or None once the listing is exhausted."""
        if len(rows) < self.limit:
            return None
        last = rows[-1]
        sort_key: datetime | None = getattr(last, sort_attr)
        if sort_key is None:
            return None
        return encode_cursor(sort_key, last.id)


def plan_page(
    requested_limit: Any,
    cursor_token: str | None,
    default_limit: int = DEFAULT_QUERY_LIMIT,
    max_limit: int = MAX_QUERY_LIMIT,
) -> PagePlan:
    """Turn raw limit/cursor request parameters into a PagePlan. Never raises."""
    return PagePlan(
        limit=normalize_limit(requested_limit, default_limit, max_limit),
        cursor=decode_cursor(cursor_token),
    )


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of rows plus the cursor for the next page."""

    items: list[T]
    next_cursor: str | None
