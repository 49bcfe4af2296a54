"""
Application layer - Orchestration of loading, resolution, caching and checks.
"""

from .services import (
    AssignmentLoader,
    AssignmentLoadResult,
    RoleResolver,
    AuthorizationService,
    GateState,
    PermissionGate,
)

__all__ = [
    "AssignmentLoader",
    "AssignmentLoadResult",
    "RoleResolver",
    "AuthorizationService",
    "GateState",
    "PermissionGate",
]
