"""Jinja2 rendering of the prerendered article pages."""
import re
from datetime import datetime
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined

from schemas.article import ArticleDetail, ArticleListItem

COPY: dict[str, dict[str, str]] = {
    "zh": {
        "site": "bye4o",
        "html_lang": "zh-CN",
        "list_title": "档案文章",
        "list_lead": "直出页面：便于搜索抓取与稳定阅读。",
        "read_label": "阅读全文",
        "article_label": "文章",
        "by": "作者",
        "updated": "更新于",
        "published": "发布于",
        "related": "相关链接",
        "back": "返回文章列表",
        "list_empty": "暂无文章。",
        "not_found_title": "文章未找到",
        "not_found_lead": "这篇文章不存在，或已被移除。",
        "server_error_title": "文章渲染失败",
        "server_error_lead": "系统暂时无法渲染这篇文章，请稍后重试。",
    },
    "en": {
        "site": "bye4o",
        "html_lang": "en-US",
        "list_title": "Archive Articles",
        "list_lead": "Direct output pages for crawler-friendly indexing and stable reading.",
        "read_label": "Read article",
        "article_label": "Article",
        "by": "By",
        "updated": "Updated",
        "published": "Published",
        "related": "Related links",
        "back": "Back to article list",
        "list_empty": "No articles yet.",
        "not_found_title": "Article not found",
        "not_found_lead": "This article does not exist or has been removed.",
        "server_error_title": "Article render failed",
        "server_error_lead": "This page cannot be rendered right now. Please retry later.",
    },
}

_BASE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{ copy.html_lang }}">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{{ title }}</title>
  <meta name="description" content="{{ description }}" />
  <meta name="robots" content="index,follow" />
  <link rel="canonical" href="{{ canonical }}" />
  <link rel="alternate" hreflang="zh" href="{{ alternates.zh }}" />
  <link rel="alternate" hreflang="en" href="{{ alternates.en }}" />
  <link rel="alternate" hreflang="x-default" href="{{ alternates.zh }}" />
  <style>
    :root { color-scheme: dark; --line: rgba(181, 142, 78, 0.35); --gold: #d7b171; --text: #f2dfbe; --text-soft: rgba(222, 191, 145, 0.9); }
    * { box-sizing: border-box; }
    body { margin: 0; font-family: "Noto Sans SC", "Segoe UI", sans-serif; color: var(--text); background: linear-gradient(180deg, #16100b 0%, #080604 100%); min-height: 100vh; }
    a { color: var(--gold); text-decoration: none; }
    .page { width: min(980px, 100%); margin: 0 auto; padding: 1rem; display: grid; gap: 0.95rem; }
    .page-head, .article-detail { border: 1px solid var(--line); border-radius: 16px; padding: 1rem; }
    .page-kicker { margin: 0; color: var(--gold); font-size: 0.78rem; letter-spacing: 0.08em; text-transform: uppercase; }
    .page-title { margin: 0.3rem 0 0; color: var(--gold); line-height: 1.32; }
    .page-lead { margin: 0.52rem 0 0; color: var(--text-soft); line-height: 1.68; }
    .article-list { display: grid; gap: 0.72rem; }
    .article-card { border: 1px solid var(--line); border-radius: 14px; padding: 0.85rem; display: grid; gap: 0.5rem; }
    .article-card__meta, .article-meta { margin: 0; display: flex; flex-wrap: wrap; gap: 0.5rem 0.8rem; font-size: 0.8rem; }
    .article-section p { margin: 0.42rem 0; line-height: 1.72; }
  </style>
</head>
<body>
{% block body %}{% endblock %}
</body>
</html>
"""

_LIST_TEMPLATE = """{% extends "base.html" %}
{% block body %}
<main class="page">
  <header class="page-head">
    <p class="page-kicker">{{ copy.site }}</p>
    <h1 class="page-title">{{ copy.list_title }}</h1>
    <p class="page-lead">{{ copy.list_lead }}</p>
  </header>
  <section class="article-list">
  {%- for item in items %}
    <article class="article-card">
      <p class="article-card__meta">
        <span>{{ item.published_at | article_date }}</span>
        <span>{{ item.author.name }}</span>
        <span>{{ item.category }}</span>
      </p>
      <h2 class="article-card__title"><a href="{{ localized('/articles/' ~ item.id) }}">{{ item.title }}</a></h2>
      <p class="article-card__summary">{{ item.summary or "-" }}</p>
      <p class="article-card__cta"><a href="{{ localized('/articles/' ~ item.id) }}">{{ copy.read_label }}</a></p>
    </article>
  {%- else %}
    <article class="article-card article-card--empty"><p>{{ copy.list_empty }}</p></article>
  {%- endfor %}
  </section>
</main>
{% endblock %}
"""

_DETAIL_TEMPLATE = """{% extends "base.html" %}
{% block body %}
<main class="page">
  <article class="article-detail">
    <header class="article-head">
      <p class="page-kicker">{{ copy.article_label }}</p>
      <h1 class="page-title">{{ item.title }}</h1>
      <p class="page-lead">{{ item.summary or "" }}</p>
      <p class="article-meta">
        <span>{{ copy.by }}
        {%- if item.author.profile_url %} <a href="{{ item.author.profile_url }}" target="_blank" rel="noreferrer noopener">{{ item.author.name }}</a>
        {%- else %} {{ item.author.name }}{% endif %}</span>
        <span>{{ copy.published }} {{ item.published_at | article_date }}</span>
        <span>{{ copy.updated }} {{ (item.updated_at or item.published_at) | article_date }}</span>
      </p>
      <p class="article-actions"><a href="{{ localized('/carvings/articles') }}">{{ copy.back }}</a></p>
    </header>
    <div class="article-body">
    {%- for section in item.sections %}
      <section class="article-section" id="{{ section.id }}">
        <h2>{{ section.heading }}</h2>
        {%- for paragraph in section.paragraphs %}
        <p>{{ paragraph }}</p>
        {%- endfor %}
      </section>
    {%- endfor %}
    </div>
    {%- if item.links %}
    <section class="related-links">
      <h2>{{ copy.related }}</h2>
      <ul>
      {%- for link in item.links %}
        <li><a href="{{ link.href }}"{% if link.href is external %} target="_blank" rel="noreferrer noopener"{% endif %}>{{ link.label }}</a>
        {%- if link.description %}<p>{{ link.description }}</p>{% endif %}</li>
      {%- endfor %}
      </ul>
    </section>
    {%- endif %}
  </article>
</main>
{% endblock %}
"""

_ERROR_TEMPLATE = """{% extends "base.html" %}
{% block body %}
<main class="page">
  <section class="article-detail article-detail--error">
    <p class="page-kicker">{{ copy.article_label }}</p>
    <h1 class="page-title">{{ heading }}</h1>
    <p class="page-lead">{{ description }}</p>
    <p class="article-actions"><a href="{{ localized('/carvings/articles') }}">{{ copy.back }}</a></p>
    <p class="article-status-code">HTTP {{ status_code }}</p>
  </section>
</main>
{% endblock %}
"""

_EXTERNAL_LINK_RE = re.compile(r"^https?://", re.IGNORECASE)


def format_article_date(value: str) -> str:
    """ISO timestamps are shown as YYYY-MM-DD; anything else is shown verbatim."""
    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        return value


def localized_path(route_path: str, locale: str) -> str:
    """'/articles/x' -> '/en/articles/x'."""
    normalized = route_path if route_path.startswith("/") else f"/{route_path}"
    return f"/{locale}{normalized}"


_env = Environment(
    loader=DictLoader(
        {
            "base.html": _BASE_TEMPLATE,
            "list.html": _LIST_TEMPLATE,
            "detail.html": _DETAIL_TEMPLATE,
            "error.html": _ERROR_TEMPLATE,
        },
    ),
    autoescape=True,
    undefined=StrictUndefined,
)
_env.filters["article_date"] = format_article_date
_env.tests["external"] = lambda value: bool(_EXTERNAL_LINK_RE.match(value))


def _page_context(origin: str, locale: str, route_path: str) -> dict[str, Any]:
    base = origin.rstrip("/")
    return {
        "copy": COPY[locale],
        "canonical": f"{base}{localized_path(route_path, locale)}",
        "alternates": {
            other: f"{base}{localized_path(route_path, other)}" for other in COPY
        },
        "localized": lambda path: localized_path(path, locale),
    }


def render_article_list_page(items: list[ArticleListItem], locale: str, origin: str) -> str:
    """Render the article index page."""
    copy = COPY[locale]
    return _env.get_template("list.html").render(
        **_page_context(origin, locale, "/carvings/articles"),
        title=f"{copy['site']} | {copy['list_title']}",
        description=copy["list_lead"],
        items=items,
    )


def render_article_detail_page(item: ArticleDetail, locale: str, origin: str) -> str:
    """Render one article page."""
    copy = COPY[locale]
    return _env.get_template("detail.html").render(
        **_page_context(origin, locale, f"/articles/{item.id}"),
        title=f"{item.title} | {copy['site']}",
        description=item.summary or copy["article_label"],
        item=item,
    )


def render_article_error_page(locale: str, origin: str, status_code: int) -> str:
    """Render the not-found (404) or render-failure (5xx) page."""
    copy = COPY[locale]
    prefix = "not_found" if status_code == 404 else "server_error"
    return _env.get_template("error.html").render(
        **_page_context(origin, locale, "/carvings/articles"),
        title=f"{copy['site']} | {copy[prefix + '_title']}",
        description=copy[prefix + "_lead"],
        heading=copy[prefix + "_title"],
        status_code=status_code,
    )
