"""
Service layer for embers and traces.

Both resources are public, append-only feeds with the same contract: a display
name plus a short message, listed newest first across all visitors.
"""
import json
import logging
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utc_now
from models.ember import Ember
from models.trace import Trace
from services.pagination import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, Page, plan_page
from services.render_cache import ArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "匿名旅人"
ARCHIVE_CONTENT_TYPE = "application/json; charset=utf-8"


class PostEntity(Protocol):
    """Columns shared by ember and trace rows."""

    id: str
    anon_user_id: str
    display_name: str
    message: str
    created_at: datetime


P = TypeVar("P", bound=PostEntity)


def resolve_display_name(submitted: str | None, stored: str | None) -> str:
    """Submitted name, else the name remembered for the visitor, else the default."""
    return (submitted or "").strip() or (stored or "").strip() or DEFAULT_DISPLAY_NAME


class PostService(Generic[P]):
    """Listing and creation for a public post feed."""

    default_limit: int = DEFAULT_QUERY_LIMIT
    max_limit: int = MAX_QUERY_LIMIT

    def __init__(self, model: type[P], entity_name: str) -> None:
        self.model = model
        self.entity_name = entity_name

    async def list_posts(
        self,
        db: AsyncSession,
        limit: Any = None,
        cursor: str | None = None,
    ) -> Page[P]:
        """List posts from every visitor, newest first."""
        plan = plan_page(limit, cursor, self.default_limit, self.max_limit)
        query = plan.apply(select(self.model), self.model.created_at, self.model.id)
        rows = list((await db.execute(query)).scalars().all())
        return Page(items=rows, next_cursor=plan.next_cursor(rows))

    async def create_post(
        self,
        db: AsyncSession,
        owner_id: str,
        message: str,
        display_name: str,
        now: datetime | None = None,
    ) -> P:
        """Insert a post. Callers resolve the display name first."""
        post = self.model(
            anon_user_id=owner_id,
            display_name=display_name,
            message=message,
            created_at=now or utc_now(),
        )
        db.add(post)
        await db.flush()
        return post


ember_service = PostService(Ember, "Ember")
trace_service = PostService(Trace, "Trace")


def trace_archive_key(trace: Trace) -> str:
    """Archive location of a trace: traces/<YYYY-MM-DD>/<id>.json."""
    return f"traces/{trace.created_at.date().isoformat()}/{trace.id}.json"


async def archive_trace(
    store: ArtifactStore,
    trace: Trace,
    now: datetime | None = None,
) -> bool:
    """
    Write a JSON copy of a new trace to the artifact store.

    Runs after the response is sent; a store that is unavailable only loses the
    archive copy, never the trace itself.
    """
    archived_at = (now or utc_now()).isoformat()
    payload = {
        "id": trace.id,
        "display_name": trace.display_name,
        "message": trace.message,
        "created_at": trace.created_at.isoformat(),
        "anon_user_id": trace.anon_user_id,
        "archived_at": archived_at,
    }
    key = trace_archive_key(trace)
    stored = await store.put(
        key,
        json.dumps(payload, ensure_ascii=False),
        ARCHIVE_CONTENT_TYPE,
        {"archived_at": archived_at},
    )
    if not stored:
        logger.warning("Trace %s was not archived", trace.id)
    return stored
