"""
Cache for prerendered HTML pages.

Two validity rules are supported:

- Detail pages are content-addressed: a cached page is valid while the source
  fingerprint and the render version it was built from still match the current
  ones. Any source change produces a new fingerprint and forces a rebuild.
- List pages aggregate many sources, so they are instead valid for a fixed
  freshness window after generation (and only for the same render version).

The cache never computes fingerprints itself; callers derive them from their
source (see services.article_service). Entries are only ever overwritten, never
explicitly invalidated.
"""
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol

from models.base import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RENDER_VERSION = "articles-html-v1"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
DETAIL_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=1800"
LIST_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=1800"

Builder = Callable[[], str | Awaitable[str]]


class RenderState(StrEnum):
    """How a rendered page was obtained."""

    HIT = "hit"
    MISS = "miss"
    REBUILD = "rebuild"


@dataclass(frozen=True)
class StoredArtifact:
    """A cached body plus the metadata it was written with."""

    body: str
    content_type: str = HTML_CONTENT_TYPE
    metadata: dict[str, str] = field(default_factory=dict)


class ArtifactStore(Protocol):
    """Key/value store for rendered artifacts."""

    async def get(self, key: str) -> StoredArtifact | None:
        """Return the stored artifact, or None if absent or unavailable."""
        ...

    async def put(
        self,
        key: str,
        body: str,
        content_type: str,
        metadata: dict[str, str],
    ) -> bool:
        """Store an artifact, replacing any previous one. Returns False if not stored."""
        ...


@dataclass(frozen=True)
class RenderResult:
    """Rendered body and whether it came from the cache."""

    body: str
    state: RenderState


def _parse_generated_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(value))
    except ValueError:
        return None


class RenderCache:
    """Get-or-build access to cached HTML pages."""

    def __init__(
        self,
        store: ArtifactStore,
        render_version: str = RENDER_VERSION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.render_version = render_version
        self.clock = clock

    async def get_or_build_detail(
        self,
        key: str,
        fingerprint: str,
        build: Builder,
        locale: str | None = None,
    ) -> RenderResult:
        """
        Return the cached detail page for `key` if it was built from `fingerprint`.

        Otherwise build it, store it with the current fingerprint, and report
        MISS (nothing cached before) or REBUILD (a stale entry was replaced).
        """
        cached = await self.store.get(key)
        if cached is not None and self._detail_is_valid(cached, fingerprint, locale):
            return RenderResult(body=cached.body, state=RenderState.HIT)

        metadata = {"fingerprint": fingerprint}
        return await self._build_and_store(key, build, metadata, locale, cached)

    async def get_or_build_list(
        self,
        key: str,
        freshness: timedelta,
        build: Builder,
        locale: str | None = None,
    ) -> RenderResult:
        """
        Return the cached list page for `key` if it is younger than `freshness`.

        Otherwise rebuild and store it stamped with the current time.
        """
        cached = await self.store.get(key)
        if cached is not None and self._list_is_valid(cached, freshness, locale):
            return RenderResult(body=cached.body, state=RenderState.HIT)

        return await self._build_and_store(key, build, {}, locale, cached)

    def _matches_version_and_locale(self, cached: StoredArtifact, locale: str | None) -> bool:
        if cached.metadata.get("render_version") != self.render_version:
            return False
        return locale is None or cached.metadata.get("locale") == locale

    def _detail_is_valid(
        self,
        cached: StoredArtifact,
        fingerprint: str,
        locale: str | None,
    ) -> bool:
        return (
            self._matches_version_and_locale(cached, locale)
            and cached.metadata.get("fingerprint") == fingerprint
        )

    def _list_is_valid(
        self,
        cached: StoredArtifact,
        freshness: timedelta,
        locale: str | None,
    ) -> bool:
        if not self._matches_version_and_locale(cached, locale):
            return False
        generated_at = _parse_generated_at(cached.metadata.get("generated_at"))
        if generated_at is None:
            return False
        return self.clock() - generated_at <= freshness

    async def _build_and_store(
        self,
        key: str,
        build: Builder,
        metadata: dict[str, str],
        locale: str | None,
        previous: StoredArtifact | None,
    ) -> RenderResult:
        body = build()
        if inspect.isawaitable(body):
            body = await body

        metadata = {
            **metadata,
            "render_version": self.render_version,
            "generated_at": self.clock().isoformat(),
        }
        if locale is not None:
            metadata["locale"] = locale

        stored = await self.store.put(key, body, HTML_CONTENT_TYPE, metadata)
        if not stored:
            logger.debug("Rendered page %s was not cached", key)

        state = RenderState.MISS if previous is None else RenderState.REBUILD
        return RenderResult(body=body, state=state)
