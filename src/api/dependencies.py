"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.artifacts import get_artifact_store
from core.config import Settings, get_settings
from core.identity import get_anon_user_id, get_optional_anon_user_id
from db.session import get_async_session
from services.article_service import ArticleCatalog
from services.onward_service import get_onward_service
from services.render_cache import ArtifactStore, RenderCache
from services.unburnt_service import get_unburnt_service


def get_render_cache(store: ArtifactStore = Depends(get_artifact_store)) -> RenderCache:
    """Render cache over the configured artifact store."""
    return RenderCache(store)


def get_article_catalog(settings: Settings = Depends(get_settings)) -> ArticleCatalog:
    """Article catalog rooted at ARTICLES_DIR."""
    return ArticleCatalog(settings.articles_dir)


__all__ = [
    "get_anon_user_id",
    "get_article_catalog",
    "get_artifact_store",
    "get_async_session",
    "get_onward_service",
    "get_optional_anon_user_id",
    "get_render_cache",
    "get_settings",
    "get_unburnt_service",
]
