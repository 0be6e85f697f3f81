"""Article catalog endpoints: JSON API plus prerendered HTML pages."""
import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse

from api.dependencies import get_article_catalog, get_render_cache, get_settings
from api.helpers import api_error
from core.config import Settings
from core.http_cache import cached_html_response
from schemas.article import ArticleDetail, ArticleListResponse
from services.article_render import (
    render_article_detail_page,
    render_article_error_page,
    render_article_list_page,
)
from services.article_service import ArticleCatalog, ArticleFormatError, resolve_locale
from services.exceptions import NotFoundError
from services.render_cache import DETAIL_CACHE_CONTROL, LIST_CACHE_CONTROL, RenderCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["articles"])

PathLocale = Literal["zh", "en"]


def _request_locale(request: Request, path_locale: str | None = None) -> str:
    requested = path_locale or request.query_params.get("locale")
    return resolve_locale(requested, request.headers.get("accept-language"))


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _cache_key(request: Request, locale: str, path: str) -> str:
    # Pages embed absolute canonical links, so each origin gets its own entry
    return f"rendered/{request.url.scheme}/{request.url.netloc}/html/{locale}/{path}"


# --- JSON API ---


@router.get("/api/articles", response_model=ArticleListResponse)
async def list_articles(
    request: Request,
    locale: str | None = Query(default=None, description="zh or en"),
    catalog: ArticleCatalog = Depends(get_article_catalog),
) -> ArticleListResponse:
    """List every article in the requested locale, newest first."""
    return ArticleListResponse(items=catalog.list_articles(
        resolve_locale(locale, request.headers.get("accept-language")),
    ))


@router.get("/api/articles/{article_id}", response_model=ArticleDetail)
async def get_article(
    article_id: str,
    request: Request,
    locale: str | None = Query(default=None, description="zh or en"),
    catalog: ArticleCatalog = Depends(get_article_catalog),
) -> ArticleDetail:
    """Get one article."""
    try:
        return catalog.get_article(
            article_id, resolve_locale(locale, request.headers.get("accept-language")),
        ).item
    except NotFoundError as e:
        raise api_error(404, "ARTICLE_NOT_FOUND", "Article not found") from e
    except ArticleFormatError as e:
        logger.exception("Article %s could not be parsed", article_id)
        raise api_error(500, "ARTICLE_INVALID_PAYLOAD", "Invalid article payload") from e


# --- Prerendered pages ---


async def _render_detail(
    request: Request,
    article_id: str,
    locale: str,
    catalog: ArticleCatalog,
    render_cache: RenderCache,
) -> Response:
    origin = _origin(request)
    try:
        loaded = catalog.get_article(article_id, locale)
    except NotFoundError:
        return HTMLResponse(render_article_error_page(locale, origin, 404), status_code=404)
    except ArticleFormatError:
        logger.exception("Article %s could not be rendered", article_id)
        return HTMLResponse(render_article_error_page(locale, origin, 500), status_code=500)

    result = await render_cache.get_or_build_detail(
        key=_cache_key(request, locale, f"articles/{loaded.item.id}.html"),
        fingerprint=loaded.fingerprint,
        build=lambda: render_article_detail_page(loaded.item, locale, origin),
        locale=locale,
    )
    return cached_html_response(request, result.body, DETAIL_CACHE_CONTROL, result.state)


async def _render_list(
    request: Request,
    locale: str,
    catalog: ArticleCatalog,
    render_cache: RenderCache,
    settings: Settings,
) -> Response:
    origin = _origin(request)
    result = await render_cache.get_or_build_list(
        key=_cache_key(request, locale, "carvings/articles.html"),
        freshness=settings.article_list_freshness,
        build=lambda: render_article_list_page(catalog.list_articles(locale), locale, origin),
        locale=locale,
    )
    return cached_html_response(request, result.body, LIST_CACHE_CONTROL, result.state)


@router.get("/articles/{article_id}", response_class=HTMLResponse)
async def article_page(
    article_id: str,
    request: Request,
    catalog: ArticleCatalog = Depends(get_article_catalog),
    render_cache: RenderCache = Depends(get_render_cache),
) -> Response:
    """Prerendered article page."""
    return await _render_detail(
        request, article_id, _request_locale(request), catalog, render_cache,
    )


@router.get("/{path_locale}/articles/{article_id}", response_class=HTMLResponse)
async def localized_article_page(
    path_locale: PathLocale,
    article_id: str,
    request: Request,
    catalog: ArticleCatalog = Depends(get_article_catalog),
    render_cache: RenderCache = Depends(get_render_cache),
) -> Response:
    """Prerendered article page under its locale prefix."""
    return await _render_detail(
        request, article_id, _request_locale(request, path_locale), catalog, render_cache,
    )


@router.get("/carvings/articles", response_class=HTMLResponse)
async def article_list_page(
    request: Request,
    catalog: ArticleCatalog = Depends(get_article_catalog),
    render_cache: RenderCache = Depends(get_render_cache),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Prerendered article index."""
    return await _render_list(request, _request_locale(request), catalog, render_cache, settings)


@router.get("/{path_locale}/carvings/articles", response_class=HTMLResponse)
async def localized_article_list_page(
    path_locale: PathLocale,
    request: Request,
    catalog: ArticleCatalog = Depends(get_article_catalog),
    render_cache: RenderCache = Depends(get_render_cache),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Prerendered article index under its locale prefix."""
    return await _render_list(
        request, _request_locale(request, path_locale), catalog, render_cache, settings,
    )
