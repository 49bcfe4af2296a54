"""
Role entity - Named collection of permissions with inheritance.

Handles role definitions and the assignments that bind them to principals.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from ...core.exceptions import InvalidPermissionError
from .permission import Permission


class RoleKind(str, Enum):
    """Where a role may be assigned."""
    PLATFORM = "platform"
    ORGANIZATION = "organization"


@dataclass(frozen=True)
class Role:
    """
    Core role entity.

    ``inherits`` keeps declaration order so that inheritance expansion is
    deterministic. The inheritance graph may contain cycles; resolvers must
    not assume otherwise.
    """
    id: str
    name: str
    description: str = ""
    kind: RoleKind = RoleKind.ORGANIZATION
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)
    inherits: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate identifiers and freeze collections."""
        if not self.id:
            raise InvalidPermissionError("Role id cannot be empty")

        object.__setattr__(self, 'kind', RoleKind(self.kind))
        object.__setattr__(self, 'permissions', frozenset(self.permissions))

        inherits = tuple(dict.fromkeys(self.inherits))
        if any(not isinstance(role_id, str) or not role_id for role_id in inherits):
            raise InvalidPermissionError(f"Role {self.id} has an invalid inherited role id: {self.inherits!r}")
        object.__setattr__(self, 'inherits', inherits)

    @property
    def is_platform_role(self) -> bool:
        return self.kind == RoleKind.PLATFORM

    def get_permission_codes(self) -> FrozenSet[str]:
        """Get all permission codes granted directly by this role."""
        return frozenset(permission.code for permission in self.permissions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Role":
        """Create a role from a store mapping (``type`` or ``kind`` accepted)."""
        try:
            role_id = data["id"]
        except KeyError:
            raise InvalidPermissionError("Role definition is missing 'id'", details={"role": dict(data)})

        return cls(
            id=role_id,
            name=data.get("name", role_id),
            description=data.get("description") or "",
            kind=RoleKind(data.get("kind") or data.get("type") or RoleKind.ORGANIZATION),
            permissions=frozenset(Permission.from_dict(p) for p in data.get("permissions") or ()),
            inherits=tuple(data.get("inherits") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "permissions": sorted((p.to_dict() for p in self.permissions), key=_permission_sort_key),
            "inherits": list(self.inherits),
        }

    def __str__(self) -> str:
        return f"Role({self.id})"


def _permission_sort_key(data: Dict[str, Any]) -> Tuple[str, str, str, str]:
    return (data["resource"], data["action"], data["scope"], repr(sorted((data.get("conditions") or {}).items())))


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes from the store are UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@dataclass(frozen=True)
class ScopeBinding:
    """Scope identifiers an assignment binds its role to."""
    division_id: Optional[str] = None
    branch_id: Optional[str] = None
    territory_id: Optional[str] = None

    def placeholder_values(self) -> Dict[str, str]:
        """Map placeholder names (``divisionId``...) to bound values, skipping empty ones."""
        values = {
            "divisionId": self.division_id,
            "branchId": self.branch_id,
            "territoryId": self.territory_id,
        }
        return {name: value for name, value in values.items() if value}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ScopeBinding":
        data = data or {}
        return cls(
            division_id=data.get("divisionId"),
            branch_id=data.get("branchId"),
            territory_id=data.get("territoryId"),
        )

    @property
    def is_empty(self) -> bool:
        return not self.placeholder_values()


@dataclass(frozen=True)
class RoleAssignment:
    """Binds one principal to one role within an organization."""
    principal_id: str
    organization_id: str
    role_id: str
    binding: ScopeBinding = field(default_factory=ScopeBinding)
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.role_id:
            raise InvalidPermissionError("Role assignment must reference a role id")
        if self.binding is None:
            object.__setattr__(self, 'binding', ScopeBinding())

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the assignment has passed its expiry time."""
        if self.expires_at is None:
            return False
        now = _as_utc(now or datetime.now(timezone.utc))
        return _as_utc(self.expires_at) <= now

    @classmethod
    def for_roles(
        cls,
        principal_id: str,
        organization_id: str,
        role_ids: Iterable[str],
        binding: Optional[ScopeBinding] = None
    ) -> Tuple["RoleAssignment", ...]:
        """Build one assignment per role id sharing the same binding."""
        return tuple(
            cls(
                principal_id=principal_id,
                organization_id=organization_id,
                role_id=role_id,
                binding=binding or ScopeBinding()
            )
            for role_id in role_ids
        )

    def __str__(self) -> str:
        return f"RoleAssignment({self.principal_id} -> {self.role_id} @ {self.organization_id})"
