"""
Redis cache implementation for effective permission sets.

Shares resolved permission sets between processes. Loads are deduplicated per
process; Redis failures degrade to loading from the stores.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

import redis.asyncio as redis

from ...domain.entities.effective_permission_set import EffectivePermissionSet, PermissionCacheKey
from ...domain.protocols.cache_protocols import PermissionCacheProtocol, PermissionSetLoader
from .memory_permission_cache import ensure_key
from .single_flight import IsCurrent, SingleFlight


logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so ``value`` only matches itself."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisPermissionCache(PermissionCacheProtocol):
    """
    Redis implementation of the permission cache.

    Features:
    - Organization/principal key layout: ``{prefix}:eps:{organization_id}:{principal_id}``
    - Optional TTL via SETEX
    - JSON serialization of permission sets
    - Pattern invalidation with SCAN
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key_prefix: str = "neo_rbac",
        ttl_seconds: Optional[float] = None
    ):
        self._redis = redis_client
        self._key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._flight: SingleFlight[EffectivePermissionSet] = SingleFlight()
        self.hits = 0
        self.misses = 0
        self.errors = 0

    @classmethod
    def from_settings(cls, redis_client: redis.Redis, settings) -> "RedisPermissionCache":
        return cls(redis_client, key_prefix=settings.redis_key_prefix, ttl_seconds=settings.cache_ttl_seconds)

    def _full_key(self, key: PermissionCacheKey) -> str:
        principal_id, organization_id = key
        return f"{self._key_prefix}:eps:{organization_id}:{principal_id}"

    async def get(self, key: PermissionCacheKey) -> Optional[EffectivePermissionSet]:
        """Get cached permission set."""
        key = tuple(key)
        try:
            raw = await self._redis.get(self._full_key(key))
        except Exception as e:
            self.errors += 1
            logger.warning(f"Failed to get permission set from cache: {e}")
            return None

        if raw is None:
            return None

        try:
            if isinstance(raw, bytes):
                raw = raw.decode()
            value = EffectivePermissionSet.from_dict(json.loads(raw))
        except Exception as e:
            self.errors += 1
            logger.warning(f"Discarding undecodable permission set for {key}: {e}")
            return None

        if value.key != key:
            logger.warning(f"Discarding cached permission set for {value.key} stored under {key}")
            return None
        return value

    async def get_or_load(self, key: PermissionCacheKey, loader: PermissionSetLoader) -> EffectivePermissionSet:
        """Get cached permission set, loading it once per process on a miss."""
        key = tuple(key)

        async def fetch(is_current: IsCurrent) -> EffectivePermissionSet:
            cached = await self.get(key)
            if cached is not None:
                self.hits += 1
                return cached

            self.misses += 1
            value = ensure_key(key, await loader())
            if is_current():
                await self._set(key, value)
                # Invalidated while writing
                if not is_current():
                    await self._delete(self._full_key(key))
            return value

        return await self._flight.do(key, fetch)

    async def _set(self, key: PermissionCacheKey, value: EffectivePermissionSet) -> None:
        try:
            data = json.dumps(value.to_dict())
            if self.ttl_seconds:
                await self._redis.setex(self._full_key(key), int(max(1, self.ttl_seconds)), data)
            else:
                await self._redis.set(self._full_key(key), data)
        except Exception as e:
            self.errors += 1
            logger.warning(f"Failed to cache permission set: {e}")

    async def _delete(self, *full_keys: str) -> None:
        if not full_keys:
            return
        try:
            await self._redis.delete(*full_keys)
        except Exception as e:
            self.errors += 1
            logger.warning(f"Failed to invalidate permission sets: {e}")

    async def _delete_pattern(self, pattern: str) -> int:
        try:
            keys = []
            async for key in self._redis.scan_iter(match=pattern):
                keys.append(key)
        except Exception as e:
            self.errors += 1
            logger.warning(f"Failed to scan cache keys for {pattern}: {e}")
            return 0

        await self._delete(*keys)
        if keys:
            logger.debug(
                f"Invalidated {len(keys)} permission sets",
                extra={"pattern": pattern, "invalidated_count": len(keys)}
            )
        return len(keys)

    async def invalidate(self, key: PermissionCacheKey) -> None:
        """Invalidate cached permissions for one principal in one organization."""
        key = tuple(key)
        self._flight.forget(key)
        await self._delete(self._full_key(key))

    async def invalidate_principal(self, principal_id: str) -> None:
        """Invalidate cached permissions of a principal in every organization."""
        self._flight.forget_where(lambda key: key[0] == principal_id)
        await self._delete_pattern(f"{escape_glob(self._key_prefix)}:eps:*:{escape_glob(principal_id)}")

    async def invalidate_organization(self, organization_id: str) -> None:
        """Invalidate cached permissions of every principal in an organization."""
        self._flight.forget_where(lambda key: key[1] == organization_id)
        await self._delete_pattern(f"{escape_glob(self._key_prefix)}:eps:{escape_glob(organization_id)}:*")

    async def invalidate_all(self) -> None:
        """Clear all permission caches."""
        self._flight.forget_all()
        await self._delete_pattern(f"{escape_glob(self._key_prefix)}:eps:*")

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "backend": "redis",
            "key_prefix": self._key_prefix,
            "in_flight": len(self._flight),
            "hits": self.hits,
            "misses": self.misses,
            "loads": self._flight.started,
            "shared_loads": self._flight.shared,
            "errors": self.errors,
            "ttl_seconds": self.ttl_seconds,
        }
