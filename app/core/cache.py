import json
import logging
from typing import Any, List, Optional

from redis.asyncio import Redis

from app.core.config import settings

logger = logging.getLogger(__name__)


def scoring_config_key(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:scoring_config"


def pipeline_stages_key(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:pipeline_stages"


class CacheService:
    """Read-through cache for tenant scoring configs and stage lists.

    If *redis_client* is ``None`` (Redis unavailable), every operation
    degrades to a no-op, so callers never need to check for ``None``.
    Only read endpoints consult the cache; writers always read the
    database under the tenant lock and invalidate afterwards.
    """

    def __init__(
        self, redis_client: Optional[Redis] = None, ttl: Optional[int] = None
    ) -> None:
        self._redis: Optional[Redis] = redis_client
        self._ttl = ttl if ttl is not None else settings.REDIS_CACHE_TTL

    # ------------------------------------------------------------------
    # JSON get / set / delete
    # ------------------------------------------------------------------

    async def get_json(self, key: str) -> Optional[Any]:
        """Deserialise a JSON-encoded value from Redis, or ``None``."""
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(key)
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Invalid JSON in cache key %s", key)
            return None

    async def set_json(self, key: str, data: Any) -> None:
        """Serialise *data* to JSON and store it with the configured TTL."""
        if self._redis is None:
            return
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError):
            logger.warning("Failed to serialise data for cache key %s", key)
            return
        try:
            if self._ttl:
                await self._redis.setex(key, self._ttl, payload)
            else:
                await self._redis.set(key, payload)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, *keys: str) -> None:
        """Remove *keys* from the cache (best-effort)."""
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception:
            logger.warning("Redis DELETE failed for keys %s", ", ".join(keys))

    # ------------------------------------------------------------------
    # Tenant helpers
    # ------------------------------------------------------------------

    async def get_scoring_config(self, tenant_id: str) -> Optional[dict]:
        return await self.get_json(scoring_config_key(tenant_id))

    async def set_scoring_config(self, tenant_id: str, config: dict) -> None:
        await self.set_json(scoring_config_key(tenant_id), config)

    async def get_stages(self, tenant_id: str) -> Optional[List[dict]]:
        return await self.get_json(pipeline_stages_key(tenant_id))

    async def set_stages(self, tenant_id: str, stages: List[dict]) -> None:
        await self.set_json(pipeline_stages_key(tenant_id), stages)

    async def invalidate_tenant(self, tenant_id: str) -> None:
        """Drop every cached read model of *tenant_id*."""
        await self.delete(scoring_config_key(tenant_id), pipeline_stages_key(tenant_id))

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
