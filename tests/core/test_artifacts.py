"""Tests for the Redis-backed artifact store."""
from unittest.mock import AsyncMock, MagicMock

from core.artifacts import ARTIFACT_KEY_PREFIX, RedisArtifactStore
from core.redis import RedisClient


def mock_redis() -> MagicMock:
    redis_client = MagicMock(spec=RedisClient)
    redis_client.hgetall = AsyncMock(return_value={})
    redis_client.replace_hash = AsyncMock(return_value=True)
    return redis_client


async def test__put__flattens_metadata_into_hash_fields() -> None:
    redis_client = mock_redis()
    store = RedisArtifactStore(redis_client)

    stored = await store.put(
        "rendered/html/zh/articles/a.html",
        "<html>",
        "text/html; charset=utf-8",
        {"fingerprint": "zh/a.md:123", "locale": "zh"},
    )

    assert stored is True
    redis_client.replace_hash.assert_awaited_once_with(
        ARTIFACT_KEY_PREFIX + "rendered/html/zh/articles/a.html",
        {
            "body": "<html>",
            "content_type": "text/html; charset=utf-8",
            "meta:fingerprint": "zh/a.md:123",
            "meta:locale": "zh",
        },
    )


async def test__get__rebuilds_artifact_from_hash() -> None:
    redis_client = mock_redis()
    redis_client.hgetall.return_value = {
        b"body": "<p>你好</p>".encode(),
        b"content_type": b"text/html; charset=utf-8",
        b"meta:fingerprint": b"fp",
    }
    store = RedisArtifactStore(redis_client)

    artifact = await store.get("k")

    assert artifact is not None
    assert artifact.body == "<p>你好</p>"
    assert artifact.content_type == "text/html; charset=utf-8"
    assert artifact.metadata == {"fingerprint": "fp"}
    redis_client.hgetall.assert_awaited_once_with(ARTIFACT_KEY_PREFIX + "k")


async def test__get__missing_or_bodiless_hash_is_a_miss() -> None:
    redis_client = mock_redis()
    store = RedisArtifactStore(redis_client)
    assert await store.get("k") is None

    redis_client.hgetall.return_value = {b"meta:fingerprint": b"fp"}
    assert await store.get("k") is None


async def test__no_client__degrades() -> None:
    store = RedisArtifactStore(None)
    assert await store.get("k") is None
    assert await store.put("k", "body", "text/plain", {}) is False
