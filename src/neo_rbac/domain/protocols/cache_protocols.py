"""Protocol interface for effective permission caching.

Implementations key entries by ``(principal_id, organization_id)`` and must
never return a set for a different key than the one requested.
"""

from abc import abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, runtime_checkable

from ..entities.effective_permission_set import EffectivePermissionSet, PermissionCacheKey


PermissionSetLoader = Callable[[], Awaitable[EffectivePermissionSet]]


@runtime_checkable
class PermissionCacheProtocol(Protocol):
    """Protocol for effective permission set caching with single-flight loads."""
    
    @abstractmethod
    async def get(self, key: PermissionCacheKey) -> Optional[EffectivePermissionSet]:
        """Get a cached set, or None when absent or expired."""
        ...
    
    @abstractmethod
    async def get_or_load(self, key: PermissionCacheKey, loader: PermissionSetLoader) -> EffectivePermissionSet:
        """Get a cached set, running ``loader`` at most once per key while a load is in flight."""
        ...
    
    @abstractmethod
    async def invalidate(self, key: PermissionCacheKey) -> None:
        """Drop the entry for one principal in one organization."""
        ...
    
    @abstractmethod
    async def invalidate_principal(self, principal_id: str) -> None:
        """Drop every entry of a principal across organizations."""
        ...
    
    @abstractmethod
    async def invalidate_organization(self, organization_id: str) -> None:
        """Drop every entry of an organization."""
        ...
    
    @abstractmethod
    async def invalidate_all(self) -> None:
        """Drop every entry."""
        ...
    
    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        ...
