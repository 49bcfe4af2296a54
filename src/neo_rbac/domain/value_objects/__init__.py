"""Value objects for neo-rbac authorization checks."""

from .principal import Principal, DEFAULT_SUPERADMIN_ROLE
from .authorization_request import AuthorizationRequest, RequestContext, ContextInput, as_request_context
from .decision import AuthorizationDecision

__all__ = [
    "Principal",
    "DEFAULT_SUPERADMIN_ROLE",
    "AuthorizationRequest",
    "RequestContext",
    "ContextInput",
    "as_request_context",
    "AuthorizationDecision",
]
