"""
Article catalog backed by a directory of Markdown and JSON sources.

Layout under the articles root:

    <locale>/<id>.md | <locale>/<id>.json    localized articles (zh, en)
    <id>.md | <id>.json                      legacy flat files, served for the
                                             default locale when no localized
                                             file with the same id exists

Markdown sources may start with a YAML front matter block. Each loaded article
carries a fingerprint of its source ("<key>:<md5>") that the render cache uses
to decide whether a prerendered page is still current.
"""
import hashlib
import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import cmp_to_key
from pathlib import Path
from typing import Any

import yaml

from models.base import ensure_utc, utc_now
from schemas.article import (
    ArticleAuthor,
    ArticleDetail,
    ArticleLink,
    ArticleListItem,
    ArticleSection,
)
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("zh", "en")
DEFAULT_LOCALE = "zh"
ARTICLE_EXTENSIONS = (".md", ".json")

DEFAULT_CATEGORY = "Archive"
DEFAULT_SECTION_HEADING = "Content"
SUMMARY_MAX_LENGTH = 180
READ_UNITS_PER_MINUTE = 420

FRONT_MATTER_LINK_KEYS = (
    ("twitter", "Twitter"),
    ("x", "X"),
    ("github", "GitHub"),
    ("rednote", "Rednote"),
    ("website", "Website"),
)

_LATIN_WORD_RE = re.compile(r"[A-Za-z0-9_]+")
_CJK_CHAR_RE = re.compile(r"[\u3400-\u9fff]")


class ArticleFormatError(Exception):
    """Raised when an article source cannot be parsed."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"Invalid article source {key}: {reason}")


@dataclass(frozen=True)
class ArticleSource:
    """A source file in the catalog."""

    key: str
    id: str
    extension: str
    locale: str
    path: Path


@dataclass(frozen=True)
class LoadedArticle:
    """A parsed article plus the fingerprint of the bytes it was parsed from."""

    item: ArticleDetail
    source: ArticleSource
    fingerprint: str


# --- Locale resolution ---


def normalize_locale(value: str | None) -> str | None:
    """Map 'zh', 'zh-CN', 'EN-us', ... to a supported locale, else None."""
    normalized = (value or "").strip().lower()
    if not normalized:
        return None
    for locale in SUPPORTED_LOCALES:
        if normalized == locale or normalized.startswith(f"{locale}-"):
            return locale
    return None


def locale_from_accept_language(header_value: str | None) -> str | None:
    """First supported locale named in an Accept-Language header, in header order."""
    if not header_value:
        return None
    for part in header_value.split(","):
        token = part.split(";")[0].strip().lower()
        locale = normalize_locale(token)
        if locale:
            return locale
        for candidate in SUPPORTED_LOCALES:
            if token.startswith(candidate):
                return candidate
    return None


def resolve_locale(requested: str | None, accept_language: str | None) -> str:
    """Explicit request first, then Accept-Language, then the default locale."""
    return (
        normalize_locale(requested)
        or locale_from_accept_language(accept_language)
        or DEFAULT_LOCALE
    )


# --- Parsing helpers ---


def normalize_article_id(value: str) -> str:
    """Article ids are case-insensitive."""
    return value.strip().lower()


def fallback_title(article_id: str) -> str:
    """'my-first-post' -> 'My First Post'."""
    return " ".join(part[:1].upper() + part[1:] for part in article_id.split("-"))


def estimate_read_minutes(text: str) -> int:
    """Whole minutes to read `text`, counting Latin words and CJK characters alike."""
    units = len(_LATIN_WORD_RE.findall(text)) + len(_CJK_CHAR_RE.findall(text))
    return max(1, math.ceil(units / READ_UNITS_PER_MINUTE))


def _scalar_to_str(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def front_matter_string(front_matter: dict[str, Any], key: str) -> str | None:
    """A front matter value as text; lists are joined with ' / '."""
    value = front_matter.get(key)
    if isinstance(value, list):
        parts = [text for text in (_scalar_to_str(item) for item in value) if text]
        return " / ".join(parts) or None
    return _scalar_to_str(value)


def front_matter_list(front_matter: dict[str, Any], key: str) -> list[str]:
    """A front matter value as a list; strings are split on commas."""
    value = front_matter.get(key)
    if isinstance(value, list):
        return [text for text in (_scalar_to_str(item) for item in value) if text]
    text = _scalar_to_str(value)
    if text:
        return [item.strip() for item in text.split(",") if item.strip()]
    return []


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """
    Split a leading '---' YAML block from the Markdown body.

    Malformed or non-mapping front matter is ignored rather than rejected.
    """
    normalized = source.removeprefix("\ufeff").replace("\r\n", "\n")
    if not normalized.startswith("---\n"):
        return {}, normalized

    end = normalized.find("\n---\n", 4)
    if end == -1:
        return {}, normalized

    block = normalized[4:end]
    body = normalized[end + 5:]
    try:
        parsed = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed article front matter: %s", e)
        return {}, body
    return (parsed if isinstance(parsed, dict) else {}), body


def parse_markdown_sections(
    body: str,
    article_id: str,
) -> tuple[str | None, list[ArticleSection]]:
    """
    Split a Markdown body into sections on '## ' headings.

    The first '# ' heading is returned as the title. Consecutive non-blank lines
    form one paragraph.
    """
    sections: list[ArticleSection] = []
    title: str | None = None
    heading = DEFAULT_SECTION_HEADING
    paragraphs: list[str] = []
    buffer: list[str] = []

    def flush_paragraph() -> None:
        paragraph = " ".join(buffer).strip()
        if paragraph:
            paragraphs.append(paragraph)
        buffer.clear()

    def flush_section() -> None:
        flush_paragraph()
        if not paragraphs:
            return
        sections.append(
            ArticleSection(
                id=f"{article_id}-section-{len(sections) + 1}",
                heading=heading,
                paragraphs=list(paragraphs),
            ),
        )
        paragraphs.clear()

    for line in body.split("\n"):
        stripped = line.strip()
        if not stripped:
            flush_paragraph()
        elif stripped.startswith("## "):
            flush_section()
            heading = stripped[3:].strip() or DEFAULT_SECTION_HEADING
        elif stripped.startswith("# "):
            if title is None:
                title = stripped[2:].strip()
        else:
            buffer.append(stripped)
    flush_section()

    if not sections:
        sections.append(
            ArticleSection(
                id=f"{article_id}-section-1",
                heading=DEFAULT_SECTION_HEADING,
                paragraphs=[body.strip()],
            ),
        )
    return title, sections


def _summary_from_sections(sections: list[ArticleSection]) -> str | None:
    for section in sections:
        for paragraph in section.paragraphs:
            if paragraph.strip():
                return paragraph.strip()[:SUMMARY_MAX_LENGTH]
    return None


def _section_text(sections: list[ArticleSection]) -> str:
    return " ".join(paragraph for section in sections for paragraph in section.paragraphs)


def parse_markdown_article(article_id: str, source: str) -> ArticleDetail:
    """Build an article from Markdown with optional YAML front matter."""
    front_matter, body = split_front_matter(source)
    heading_title, sections = parse_markdown_sections(body.strip(), article_id)

    links = [
        ArticleLink(label=label, href=href)
        for key, label in FRONT_MATTER_LINK_KEYS
        if (href := front_matter_string(front_matter, key))
    ]
    return ArticleDetail(
        id=article_id,
        title=front_matter_string(front_matter, "title")
        or heading_title
        or fallback_title(article_id),
        summary=front_matter_string(front_matter, "summary") or _summary_from_sections(sections),
        published_at=front_matter_string(front_matter, "publishedAt")
        or front_matter_string(front_matter, "date")
        or utc_now().isoformat(),
        updated_at=front_matter_string(front_matter, "updatedAt")
        or front_matter_string(front_matter, "updated_at"),
        read_minutes=estimate_read_minutes(_section_text(sections)),
        category=front_matter_string(front_matter, "category") or DEFAULT_CATEGORY,
        tags=front_matter_list(front_matter, "tags"),
        author=ArticleAuthor(
            name=front_matter_string(front_matter, "author") or "Unknown",
            role=front_matter_string(front_matter, "authorRole") or "",
            profile_url=front_matter_string(front_matter, "authorUrl"),
        ),
        links=links,
        sections=sections,
    )


def _read_str(value: Any) -> str | None:
    return value.strip() or None if isinstance(value, str) else None


def _read_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_read_str(item) for item in value) if text]


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_json_article(article_id: str, source: str, key: str = "") -> ArticleDetail:
    """
    Build an article from a JSON document.

    Raises:
        ArticleFormatError: If the source is not valid JSON.
    """
    try:
        record = _as_dict(json.loads(source))
    except json.JSONDecodeError as e:
        raise ArticleFormatError(key or article_id, "invalid JSON") from e

    sections: list[ArticleSection] = []
    raw_sections = record.get("sections")
    for index, raw in enumerate(raw_sections if isinstance(raw_sections, list) else [], start=1):
        section = _as_dict(raw)
        sections.append(
            ArticleSection(
                id=_read_str(section.get("id")) or f"{article_id}-section-{index}",
                heading=_read_str(section.get("heading")) or f"Section {index}",
                paragraphs=_read_str_list(section.get("paragraphs")) or [""],
            ),
        )
    if not sections:
        sections.append(
            ArticleSection(
                id=f"{article_id}-section-1",
                heading=DEFAULT_SECTION_HEADING,
                paragraphs=[""],
            ),
        )

    links: list[ArticleLink] = []
    raw_links = record.get("links")
    for raw in raw_links if isinstance(raw_links, list) else []:
        link = _as_dict(raw)
        label, href = _read_str(link.get("label")), _read_str(link.get("href"))
        if label and href:
            links.append(
                ArticleLink(label=label, href=href, description=_read_str(link.get("description"))),
            )

    read_minutes = record.get("readMinutes")
    valid_read_minutes = (
        isinstance(read_minutes, (int, float))
        and not isinstance(read_minutes, bool)
        and math.isfinite(read_minutes)
        and read_minutes > 0
    )

    author = _as_dict(record.get("author"))
    return ArticleDetail(
        id=article_id,
        title=_read_str(record.get("title")) or fallback_title(article_id),
        summary=_read_str(record.get("summary")),
        published_at=_read_str(record.get("publishedAt")) or utc_now().isoformat(),
        updated_at=_read_str(record.get("updatedAt")),
        read_minutes=(
            math.ceil(read_minutes)
            if valid_read_minutes
            else estimate_read_minutes(_section_text(sections))
        ),
        category=_read_str(record.get("category")) or DEFAULT_CATEGORY,
        tags=_read_str_list(record.get("tags")),
        author=ArticleAuthor(
            name=_read_str(author.get("name")) or "Unknown",
            role=_read_str(author.get("role")) or "",
            profile_url=_read_str(author.get("profileUrl")),
        ),
        links=links,
        sections=sections,
    )


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return ensure_utc(datetime.fromisoformat(value))
    except ValueError:
        return None


def _compare_articles(left: ArticleListItem, right: ArticleListItem) -> int:
    left_time = _parse_timestamp(left.published_at)
    right_time = _parse_timestamp(right.published_at)
    if left_time is not None and right_time is not None and left_time != right_time:
        return -1 if left_time > right_time else 1
    if left.id == right.id:
        return 0
    return -1 if left.id < right.id else 1


def sort_articles(items: list[ArticleListItem]) -> list[ArticleListItem]:
    """Newest publication first; unparseable dates and ties fall back to id order."""
    return sorted(items, key=cmp_to_key(_compare_articles))


def fingerprint_source(key: str, data: bytes) -> str:
    """Fingerprint of a source file: its key plus the MD5 of its bytes."""
    return f"{key}:{hashlib.md5(data).hexdigest()}"


# --- Catalog ---


class ArticleCatalog:
    """Read-only view over the articles directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _source(self, path: Path, locale: str, legacy: bool) -> ArticleSource:
        article_id = normalize_article_id(path.stem)
        extension = path.suffix.lower()
        key = f"{article_id}{extension}" if legacy else f"{locale}/{article_id}{extension}"
        return ArticleSource(
            key=key, id=article_id, extension=extension, locale=locale, path=path,
        )

    def _files(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.suffix.lower() in ARTICLE_EXTENSIONS
        )

    def list_sources(self, locale: str) -> list[ArticleSource]:
        """Sources visible in `locale`, localized files first, then unshadowed legacy files."""
        sources = [self._source(path, locale, legacy=False) for path in self._files(self.root / locale)]
        if locale != DEFAULT_LOCALE:
            return sources

        seen = {source.id for source in sources}
        for path in self._files(self.root):
            source = self._source(path, locale, legacy=True)
            if source.id not in seen:
                seen.add(source.id)
                sources.append(source)
        return sources

    def find_source(self, article_id: str, locale: str) -> ArticleSource | None:
        """Locate the source of one article, or None."""
        normalized = normalize_article_id(article_id)
        if not normalized or normalized.startswith(".") or "/" in normalized or "\\" in normalized:
            return None

        candidates = [(self.root / locale, False)]
        if locale == DEFAULT_LOCALE:
            candidates.append((self.root, True))
        for directory, legacy in candidates:
            for path in self._files(directory):
                if normalize_article_id(path.stem) == normalized:
                    return self._source(path, locale, legacy)
        return None

    def load(self, source: ArticleSource) -> LoadedArticle:
        """
        Read and parse one source.

        Raises:
            ArticleFormatError: If the source cannot be decoded or parsed.
        """
        data = source.path.read_bytes()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArticleFormatError(source.key, "not UTF-8") from e

        if source.extension == ".md":
            item = parse_markdown_article(source.id, text)
        else:
            item = parse_json_article(source.id, text, source.key)
        return LoadedArticle(
            item=item, source=source, fingerprint=fingerprint_source(source.key, data),
        )

    def get_article(self, article_id: str, locale: str) -> LoadedArticle:
        """
        Load one article.

        Raises:
            NotFoundError: If no source exists for the id in this locale.
            ArticleFormatError: If the source cannot be parsed.
        """
        source = self.find_source(article_id, locale)
        if source is None:
            raise NotFoundError("Article")
        return self.load(source)

    def list_articles(self, locale: str) -> list[ArticleListItem]:
        """Every parseable article in `locale`, newest first. Broken sources are skipped."""
        items: list[ArticleListItem] = []
        for source in self.list_sources(locale):
            try:
                loaded = self.load(source)
            except ArticleFormatError as e:
                logger.warning("Skipping article: %s", e)
                continue
            items.append(ArticleListItem.model_validate(loaded.item.model_dump()))
        return sort_articles(items)
