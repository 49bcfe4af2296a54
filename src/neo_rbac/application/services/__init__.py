"""Authorization application services."""

from .assignment_loader import AssignmentLoader, AssignmentLoadResult
from .role_resolver import RoleResolver, substitute_placeholders
from .authorization_service import AuthorizationService
from .permission_gate import GateState, PermissionGate

__all__ = [
    "AssignmentLoader",
    "AssignmentLoadResult",
    "RoleResolver",
    "substitute_placeholders",
    "AuthorizationService",
    "GateState",
    "PermissionGate",
]
