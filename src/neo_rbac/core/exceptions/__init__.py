"""Exception hierarchy for neo-rbac."""

from .base import NeoRbacError, ConfigurationError, create_error_response
from .authorization import (
    AuthorizationError,
    InvalidPermissionError,
    RoleNotFoundError,
    StoreUnavailableError,
)
from .infrastructure import (
    CacheError,
    CacheKeyMismatchError,
)

__all__ = [
    "NeoRbacError",
    "ConfigurationError",
    "create_error_response",
    "AuthorizationError",
    "InvalidPermissionError",
    "RoleNotFoundError",
    "StoreUnavailableError",
    "CacheError",
    "CacheKeyMismatchError",
]
