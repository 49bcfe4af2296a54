"""FastAPI integration for neo-rbac."""

from .dependencies import (
    configure_authorization_service,
    get_authorization_service,
    get_current_principal,
    get_current_organization,
    get_request_context,
    require_authentication,
    require_organization,
    require_permission,
    require_any_permission,
    require_all_permissions,
    require_role,
)

__all__ = [
    "configure_authorization_service",
    "get_authorization_service",
    "get_current_principal",
    "get_current_organization",
    "get_request_context",
    "require_authentication",
    "require_organization",
    "require_permission",
    "require_any_permission",
    "require_all_permissions",
    "require_role",
]
