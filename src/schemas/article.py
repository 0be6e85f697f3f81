"""Pydantic schemas for the article catalog."""
from pydantic import BaseModel, Field


class ArticleAuthor(BaseModel):
    """Article author."""

    name: str = "Unknown"
    role: str = ""
    profile_url: str | None = None


class ArticleLink(BaseModel):
    """Related link shown under an article."""

    label: str
    href: str
    description: str | None = None


class ArticleSection(BaseModel):
    """One headed section of an article body."""

    id: str
    heading: str
    paragraphs: list[str]


class ArticleListItem(BaseModel):
    """Article summary used by the catalog listing."""

    id: str
    title: str
    summary: str | None = None
    published_at: str
    updated_at: str | None = None
    read_minutes: int
    category: str = "Archive"
    tags: list[str] = Field(default_factory=list)
    author: ArticleAuthor = Field(default_factory=ArticleAuthor)


class ArticleDetail(ArticleListItem):
    """Full article."""

    links: list[ArticleLink] = Field(default_factory=list)
    sections: list[ArticleSection] = Field(default_factory=list)


class ArticleListResponse(BaseModel):
    """Every article available in a locale, newest first."""

    items: list[ArticleListItem]
