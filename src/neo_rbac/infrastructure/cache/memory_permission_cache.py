"""In-process effective permission cache with single-flight loading."""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ...core.exceptions import CacheKeyMismatchError
from ...domain.entities.effective_permission_set import EffectivePermissionSet, PermissionCacheKey
from ...domain.protocols.cache_protocols import PermissionCacheProtocol, PermissionSetLoader
from .single_flight import IsCurrent, SingleFlight


logger = logging.getLogger(__name__)


@dataclass
class MemoryCacheEntry:
    """Memory cache entry with metadata."""
    value: EffectivePermissionSet
    created_at: float
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


def ensure_key(key: PermissionCacheKey, value: EffectivePermissionSet) -> EffectivePermissionSet:
    """Reject a loaded set that belongs to a different principal or organization."""
    if value.key != tuple(key):
        raise CacheKeyMismatchError(
            f"Loader returned permissions for {value.key}, expected {tuple(key)}",
            details={"expected": list(key), "actual": list(value.key)}
        )
    return value


class MemoryPermissionCache(PermissionCacheProtocol):
    """
    Memory implementation of the permission cache.

    Features:
    - Single in-flight load per ``(principal, organization)`` key
    - Explicit invalidation per key, principal, organization or everything
    - Optional TTL safety net and entry limit (oldest entries dropped first)

    A load that is invalidated while in flight still answers its own waiters
    but is not stored.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[PermissionCacheKey, MemoryCacheEntry]" = OrderedDict()
        self._flight: SingleFlight[EffectivePermissionSet] = SingleFlight()

        self.hits = 0
        self.misses = 0
        self.invalidations = 0
        self.evictions = 0

    @classmethod
    def from_settings(cls, settings) -> "MemoryPermissionCache":
        return cls(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)

    async def get(self, key: PermissionCacheKey) -> Optional[EffectivePermissionSet]:
        """Get cached permission set."""
        entry = self._entries.get(tuple(key))
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[tuple(key)]
            self.evictions += 1
            return None
        return entry.value

    async def get_or_load(self, key: PermissionCacheKey, loader: PermissionSetLoader) -> EffectivePermissionSet:
        """Get cached permission set, loading it once for all concurrent callers on a miss."""
        key = tuple(key)
        cached = await self.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug(f"Permission cache hit for {key}")
            return cached

        self.misses += 1

        async def load(is_current: IsCurrent) -> EffectivePermissionSet:
            value = ensure_key(key, await loader())
            if is_current():
                self._store(key, value)
            else:
                logger.debug(f"Permission set for {key} invalidated during load, not caching")
            return value

        return await self._flight.do(key, load)

    def _store(self, key: PermissionCacheKey, value: EffectivePermissionSet) -> None:
        now = self._clock()
        expires_at = now + self.ttl_seconds if self.ttl_seconds else None
        self._entries[key] = MemoryCacheEntry(value=value, created_at=now, expires_at=expires_at)
        self._entries.move_to_end(key)

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug(f"Evicted permission set for {evicted}")

    async def invalidate(self, key: PermissionCacheKey) -> None:
        """Invalidate cached permissions for one principal in one organization."""
        key = tuple(key)
        self._entries.pop(key, None)
        self._flight.forget(key)
        self.invalidations += 1

    async def invalidate_principal(self, principal_id: str) -> None:
        """Invalidate cached permissions of a principal in every organization."""
        self._invalidate_where(lambda key: key[0] == principal_id)

    async def invalidate_organization(self, organization_id: str) -> None:
        """Invalidate cached permissions of every principal in an organization."""
        self._invalidate_where(lambda key: key[1] == organization_id)

    async def invalidate_all(self) -> None:
        """Clear all permission caches."""
        self._entries.clear()
        self._flight.forget_all()
        self.invalidations += 1

    def _invalidate_where(self, predicate: Callable[[PermissionCacheKey], bool]) -> None:
        for key in [key for key in self._entries if predicate(key)]:
            del self._entries[key]
        self._flight.forget_where(predicate)
        self.invalidations += 1

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "backend": "memory",
            "entries": len(self._entries),
            "in_flight": len(self._flight),
            "hits": self.hits,
            "misses": self.misses,
            "loads": self._flight.started,
            "shared_loads": self._flight.shared,
            "invalidations": self.invalidations,
            "evictions": self.evictions,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
        }
