"""Pytest fixtures for testing."""
import os
from collections.abc import AsyncGenerator
from pathlib import Path

# Must be set before any app imports that trigger Settings validation. The
# module-level engine in db.session is never used by tests (sessions are
# overridden below), so an in-memory URL is enough to satisfy it.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SECURE_COOKIES"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from models.base import Base  # noqa: E402
from services.render_cache import StoredArtifact  # noqa: E402

VISITOR_ID = "7d7a1c1e-4a5b-4c8d-9e0f-112233445566"
OTHER_VISITOR_ID = "0b0e5f0a-1c2d-4e3f-8a9b-665544332211"


class InMemoryArtifactStore:
    """ArtifactStore test double that records every write."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.items: dict[str, StoredArtifact] = {}
        self.puts: list[str] = []

    async def get(self, key: str) -> StoredArtifact | None:
        if not self.available:
            return None
        return self.items.get(key)

    async def put(
        self,
        key: str,
        body: str,
        content_type: str,
        metadata: dict[str, str],
    ) -> bool:
        self.puts.append(key)
        if not self.available:
            return False
        self.items[key] = StoredArtifact(
            body=body, content_type=content_type, metadata=dict(metadata),
        )
        return True


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine on a throwaway SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session; the database file is discarded after the test."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def artifact_store() -> InMemoryArtifactStore:
    """Artifact store standing in for Redis."""
    return InMemoryArtifactStore()


@pytest.fixture
def articles_dir(tmp_path: Path) -> Path:
    """Empty article catalog root."""
    root = tmp_path / "articles"
    root.mkdir()
    return root


@pytest.fixture
async def client(
    db_session: AsyncSession,
    artifact_store: InMemoryArtifactStore,
    articles_dir: Path,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database, artifact store and catalog overrides."""
    # Clear the settings cache so it picks up the environment set above
    from core.config import get_settings

    get_settings.cache_clear()

    from api.dependencies import get_article_catalog, get_artifact_store
    from api.main import app
    from db.session import get_async_session
    from services.article_service import ArticleCatalog

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_artifact_store] = lambda: artifact_store
    app.dependency_overrides[get_article_catalog] = lambda: ArticleCatalog(articles_dir)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def visitor_client(client: AsyncClient) -> AsyncClient:
    """Test client that already carries a visitor cookie."""
    from core.identity import ANON_USER_COOKIE

    client.cookies.set(ANON_USER_COOKIE, VISITOR_ID)
    return client


def set_cookie_headers(response) -> dict[str, str]:  # noqa: ANN001
    """Map cookie name -> raw Set-Cookie header of a response."""
    headers: dict[str, str] = {}
    for raw in response.headers.get_list("set-cookie"):
        name = raw.split("=", 1)[0].strip()
        headers[name] = raw
    return headers


def cookie_value(response, name: str) -> str | None:  # noqa: ANN001
    """Value a response sets for cookie `name` (None if it sets none)."""
    raw = set_cookie_headers(response).get(name)
    if raw is None:
        return None
    return raw.split(";", 1)[0].split("=", 1)[1].strip('"')


def use_cookies(client: AsyncClient, **cookies: str) -> None:
    """Replace the client's cookie jar with exactly these cookies."""
    client.cookies.clear()
    for name, value in cookies.items():
        client.cookies.set(name, value)
