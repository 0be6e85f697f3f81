"""Tests for the Jinja2 article page templates."""
from schemas.article import ArticleAuthor, ArticleDetail, ArticleLink, ArticleSection
from services.article_render import (
    format_article_date,
    localized_path,
    render_article_detail_page,
    render_article_error_page,
    render_article_list_page,
)

ORIGIN = "https://bye4o.example"


def make_article(**overrides: object) -> ArticleDetail:
    values: dict[str, object] = {
        "id": "hello",
        "title": "Hello <World>",
        "summary": "A greeting.",
        "published_at": "2024-05-01T10:00:00+00:00",
        "read_minutes": 1,
        "author": ArticleAuthor(name="Ada"),
        "links": [
            ArticleLink(label="Repo", href="https://github.com/ada"),
            ArticleLink(label="Home", href="/carvings/articles"),
        ],
        "sections": [ArticleSection(id="hello-section-1", heading="Intro", paragraphs=["Hi."])],
    }
    values.update(overrides)
    return ArticleDetail(**values)


def test__format_article_date() -> None:
    assert format_article_date("2024-05-01T10:00:00+00:00") == "2024-05-01"
    assert format_article_date("spring 2024") == "spring 2024"


def test__localized_path() -> None:
    assert localized_path("/articles/x", "en") == "/en/articles/x"
    assert localized_path("articles/x", "zh") == "/zh/articles/x"


def test__render_detail_page__escapes_content() -> None:
    html = render_article_detail_page(make_article(), "en", ORIGIN)

    assert "Hello &lt;World&gt;" in html
    assert "<World>" not in html
    assert "2024-05-01" in html
    assert 'id="hello-section-1"' in html
    assert f"{ORIGIN}/en/articles/hello" in html


def test__render_detail_page__only_external_links_open_new_tab() -> None:
    html = render_article_detail_page(make_article(), "en", ORIGIN)

    assert '<a href="https://github.com/ada" target="_blank"' in html
    assert '<a href="/carvings/articles">Home</a>' in html


def test__render_list_page__links_to_localized_articles() -> None:
    html = render_article_list_page([make_article()], "zh", ORIGIN)

    assert 'href="/zh/articles/hello"' in html
    assert "档案文章" in html


def test__render_list_page__empty() -> None:
    assert "No articles yet." in render_article_list_page([], "en", ORIGIN)


def test__render_error_page() -> None:
    not_found = render_article_error_page("en", ORIGIN, 404)
    failed = render_article_error_page("zh", ORIGIN, 500)

    assert "Article not found" in not_found
    assert "HTTP 404" in not_found
    assert "文章渲染失败" in failed
