"""Neo-RBAC - Scoped role-based access control for multi-tenant platforms.

Resolves a principal's role assignments within an organization into a cached,
flattened permission set and answers authorization requests against it,
including wildcards, manage implication, scope breadth and conditional grants.

Example:
    service = AuthorizationService(
        InMemoryRoleStore.with_default_roles(),
        InMemoryAssignmentStore(assignments),
    )
    allowed = await service.check(principal, "org-1", "update", "territory",
                                  context={"targetBranchId": "b-1"})
"""

from .__version__ import __version__

from .config import RbacSettings, get_settings, setup_logging
from .core.exceptions import (
    NeoRbacError,
    ConfigurationError,
    AuthorizationError,
    InvalidPermissionError,
    RoleNotFoundError,
    StoreUnavailableError,
    CacheError,
    CacheKeyMismatchError,
)
from .domain import (
    Scope,
    Permission,
    PermissionConditions,
    UNRESOLVED,
    Role,
    RoleKind,
    RoleAssignment,
    ScopeBinding,
    EffectivePermissionSet,
    Principal,
    AuthorizationRequest,
    RequestContext,
    AuthorizationDecision,
    RoleStoreProtocol,
    AssignmentStoreProtocol,
    PermissionCacheProtocol,
    matches,
)
from .application import (
    AssignmentLoader,
    RoleResolver,
    AuthorizationService,
    GateState,
    PermissionGate,
)
from .infrastructure import (
    MemoryPermissionCache,
    RedisPermissionCache,
    InMemoryRoleStore,
    InMemoryAssignmentStore,
    AsyncPGRoleStore,
    AsyncPGAssignmentStore,
    DEFAULT_ROLES,
)

__all__ = [
    "__version__",

    # Configuration
    "RbacSettings",
    "get_settings",
    "setup_logging",

    # Exceptions
    "NeoRbacError",
    "ConfigurationError",
    "AuthorizationError",
    "InvalidPermissionError",
    "RoleNotFoundError",
    "StoreUnavailableError",
    "CacheError",
    "CacheKeyMismatchError",

    # Domain
    "Scope",
    "Permission",
    "PermissionConditions",
    "UNRESOLVED",
    "Role",
    "RoleKind",
    "RoleAssignment",
    "ScopeBinding",
    "EffectivePermissionSet",
    "Principal",
    "AuthorizationRequest",
    "RequestContext",
    "AuthorizationDecision",
    "RoleStoreProtocol",
    "AssignmentStoreProtocol",
    "PermissionCacheProtocol",
    "matches",

    # Services
    "AssignmentLoader",
    "RoleResolver",
    "AuthorizationService",
    "GateState",
    "PermissionGate",

    # Adapters
    "MemoryPermissionCache",
    "RedisPermissionCache",
    "InMemoryRoleStore",
    "InMemoryAssignmentStore",
    "AsyncPGRoleStore",
    "AsyncPGAssignmentStore",
    "DEFAULT_ROLES",
]
