"""Domain entities for neo-rbac."""

from .scope import Scope, broader_or_equal
from .permission import (
    Permission,
    PermissionConditions,
    ConditionKey,
    ConditionValue,
    Unresolved,
    UNRESOLVED,
    WILDCARD,
    MANAGE,
    is_placeholder,
)
from .role import Role, RoleKind, RoleAssignment, ScopeBinding
from .effective_permission_set import EffectivePermissionSet, PermissionCacheKey, make_cache_key

__all__ = [
    "Scope",
    "broader_or_equal",
    "Permission",
    "PermissionConditions",
    "ConditionKey",
    "ConditionValue",
    "Unresolved",
    "UNRESOLVED",
    "WILDCARD",
    "MANAGE",
    "is_placeholder",
    "Role",
    "RoleKind",
    "RoleAssignment",
    "ScopeBinding",
    "EffectivePermissionSet",
    "PermissionCacheKey",
    "make_cache_key",
]
