"""
Effective permission set - Flattened result of resolving a principal's roles.

Instances are immutable. The cache replaces them on invalidation and never
updates them in place.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Tuple

from .permission import Permission


PermissionCacheKey = Tuple[str, str]


def make_cache_key(principal_id: str, organization_id: str) -> PermissionCacheKey:
    """Build the ``(principal_id, organization_id)`` cache key."""
    return (str(principal_id), str(organization_id))


@dataclass(frozen=True)
class EffectivePermissionSet:
    """Deduplicated, deterministically ordered permissions for one principal in one organization."""
    principal_id: str
    organization_id: str
    permissions: Tuple[Permission, ...] = ()
    role_ids: FrozenSet[str] = frozenset()
    resolved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        # First occurrence wins, so DFS order is preserved
        object.__setattr__(self, 'permissions', tuple(dict.fromkeys(self.permissions)))
        object.__setattr__(self, 'role_ids', frozenset(self.role_ids))

    @property
    def key(self) -> PermissionCacheKey:
        return make_cache_key(self.principal_id, self.organization_id)

    def __iter__(self) -> Iterator[Permission]:
        return iter(self.permissions)

    def __len__(self) -> int:
        return len(self.permissions)

    def __contains__(self, permission: object) -> bool:
        return permission in self.permissions

    def codes(self) -> FrozenSet[str]:
        return frozenset(permission.code for permission in self.permissions)

    @classmethod
    def empty(cls, principal_id: str, organization_id: str) -> "EffectivePermissionSet":
        return cls(principal_id=principal_id, organization_id=organization_id)

    @classmethod
    def build(
        cls,
        principal_id: str,
        organization_id: str,
        permissions: Iterable[Permission],
        role_ids: Iterable[str] = ()
    ) -> "EffectivePermissionSet":
        return cls(
            principal_id=principal_id,
            organization_id=organization_id,
            permissions=tuple(permissions),
            role_ids=frozenset(role_ids)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Cacheable representation of this set."""
        return {
            "principal_id": self.principal_id,
            "organization_id": self.organization_id,
            "permissions": [permission.to_dict() for permission in self.permissions],
            "role_ids": sorted(self.role_ids),
            "resolved_at": self.resolved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EffectivePermissionSet":
        return cls(
            principal_id=data["principal_id"],
            organization_id=data["organization_id"],
            permissions=tuple(Permission.from_dict(p) for p in data.get("permissions", [])),
            role_ids=frozenset(data.get("role_ids", [])),
            resolved_at=datetime.fromisoformat(data["resolved_at"]) if data.get("resolved_at") else datetime.now(timezone.utc),
        )
