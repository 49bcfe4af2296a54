"""
Authorization domain layer - Pure entities and rules.

Domain entities:
    - Scope: Total order of organizational breadth
    - Permission: Resource/action grant with scope and conditions
    - Role: Permission collection with inheritance
    - RoleAssignment: Principal-to-role binding within an organization
    - EffectivePermissionSet: Flattened, deduplicated grants

Business rules:
    - Wildcard and manage implication
    - Scope breadth comparison
    - Fail-closed condition evaluation
"""

from .entities import (
    Scope,
    broader_or_equal,
    Permission,
    PermissionConditions,
    UNRESOLVED,
    WILDCARD,
    MANAGE,
    Role,
    RoleKind,
    RoleAssignment,
    ScopeBinding,
    EffectivePermissionSet,
    make_cache_key,
)
from .value_objects import (
    Principal,
    AuthorizationRequest,
    RequestContext,
    AuthorizationDecision,
)
from .protocols import (
    RoleStoreProtocol,
    AssignmentStoreProtocol,
    PermissionCacheProtocol,
)
from .matcher import matches, first_match

__all__ = [
    # Entities
    "Scope",
    "broader_or_equal",
    "Permission",
    "PermissionConditions",
    "UNRESOLVED",
    "WILDCARD",
    "MANAGE",
    "Role",
    "RoleKind",
    "RoleAssignment",
    "ScopeBinding",
    "EffectivePermissionSet",
    "make_cache_key",
    
    # Value Objects
    "Principal",
    "AuthorizationRequest",
    "RequestContext",
    "AuthorizationDecision",
    
    # Protocols
    "RoleStoreProtocol",
    "AssignmentStoreProtocol",
    "PermissionCacheProtocol",
    
    # Rules
    "matches",
    "first_match",
]
