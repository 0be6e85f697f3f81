"""
Redis-backed artifact store for rendered pages and archived records.

Each artifact is one Redis hash holding the body, its content type, and its
metadata fields (prefixed "meta:"). The store inherits RedisClient's graceful
fallback: with Redis disabled or down, reads miss and writes report False.
"""
from core.redis import RedisClient, get_redis_client
from services.render_cache import StoredArtifact

ARTIFACT_KEY_PREFIX = "artifact:"
_BODY_FIELD = "body"
_CONTENT_TYPE_FIELD = "content_type"
_META_PREFIX = "meta:"


class RedisArtifactStore:
    """ArtifactStore implementation on top of the shared RedisClient."""

    def __init__(self, redis_client: RedisClient | None) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> StoredArtifact | None:
        """Return the stored artifact, or None if absent or Redis unavailable."""
        if self._redis is None:
            return None
        raw = await self._redis.hgetall(ARTIFACT_KEY_PREFIX + key)
        if not raw:
            return None

        fields = {name.decode("utf-8"): value.decode("utf-8") for name, value in raw.items()}
        body = fields.get(_BODY_FIELD)
        if body is None:
            return None
        metadata = {
            name.removeprefix(_META_PREFIX): value
            for name, value in fields.items()
            if name.startswith(_META_PREFIX)
        }
        return StoredArtifact(
            body=body,
            content_type=fields.get(_CONTENT_TYPE_FIELD, ""),
            metadata=metadata,
        )

    async def put(
        self,
        key: str,
        body: str,
        content_type: str,
        metadata: dict[str, str],
    ) -> bool:
        """Replace the artifact at `key`. Returns False if Redis unavailable."""
        if self._redis is None:
            return False
        mapping = {_BODY_FIELD: body, _CONTENT_TYPE_FIELD: content_type}
        mapping.update({_META_PREFIX + name: value for name, value in metadata.items()})
        return await self._redis.replace_hash(ARTIFACT_KEY_PREFIX + key, mapping)


def get_artifact_store() -> RedisArtifactStore:
    """Dependency returning the artifact store bound to the global Redis client."""
    return RedisArtifactStore(get_redis_client())
