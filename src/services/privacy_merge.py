"""
Mixing one of the caller's private entries into a public listing.

The merged page must not reveal which of its rows is the private one, so the
sampled row is sorted into the page like any other. The page cursor is always
taken from the public-only query: continuation pages re-run the public query and
sample again, so the merge never shifts public pagination.
"""
import random
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Protocol, TypeVar

DEFAULT_SAMPLE_ATTEMPTS = 3


class SortableRow(Protocol):
    """Row shape needed to place the sampled entry."""

    id: str
    created_at: datetime


R = TypeVar("R", bound=SortableRow)


def sort_newest_first(rows: Sequence[R]) -> list[R]:
    """Order rows by created_at descending, tie-broken by id descending."""
    return sorted(rows, key=lambda row: (row.created_at, row.id), reverse=True)


async def pick_private_sample(
    public_ids: set[str],
    pick_random: Callable[[], Awaitable[R | None]],
    load_all: Callable[[], Awaitable[Sequence[R]]],
    rng: random.Random | None = None,
    attempts: int = DEFAULT_SAMPLE_ATTEMPTS,
) -> R | None:
    """
    Choose one private row that is not already on the public page.

    Up to `attempts` single random picks are tried first (cheap in the common
    case). If every pick collides with a public id, or the store has nothing to
    pick, all candidates are loaded and one is chosen uniformly from those not
    already public.
    """
    for _ in range(attempts):
        candidate = await pick_random()
        if candidate is None:
            break
        if candidate.id not in public_ids:
            return candidate

    available = [row for row in await load_all() if row.id not in public_ids]
    if not available:
        return None
    return (rng or random).choice(available)


async def merge_private_sample(
    public_rows: Sequence[R],
    limit: int,
    pick_random: Callable[[], Awaitable[R | None]],
    load_all: Callable[[], Awaitable[Sequence[R]]],
    rng: random.Random | None = None,
    attempts: int = DEFAULT_SAMPLE_ATTEMPTS,
) -> list[R]:
    """
    Merge at most one sampled private row into a public page.

    Returns:
        The combined rows sorted newest first and truncated to `limit`.
    """
    public_ids = {row.id for row in public_rows}
    sample = await pick_private_sample(public_ids, pick_random, load_all, rng, attempts)

    merged = list(public_rows)
    if sample is not None:
        merged.append(sample)
    return sort_newest_first(merged)[:limit]
