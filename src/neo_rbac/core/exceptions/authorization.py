"""Authorization-specific exceptions for neo-rbac.

Unresolved conditions and inheritance cycles are not exceptions:
the matcher turns the former into a non-match and the resolver logs the
latter and keeps going.
"""

from typing import Optional

from .base import NeoRbacError


class AuthorizationError(NeoRbacError):
    """Base exception for authorization errors."""
    pass


class InvalidPermissionError(AuthorizationError):
    """Raised when a permission, scope or role definition fails validation."""
    pass


class RoleNotFoundError(AuthorizationError):
    """Raised when an explicitly requested role does not exist."""
    
    def __init__(self, role_id: str):
        super().__init__(
            f"Role not found: {role_id}",
            details={"role_id": role_id}
        )
        self.role_id = role_id


class StoreUnavailableError(AuthorizationError):
    """Raised when the role or assignment store cannot be reached."""
    
    def __init__(self, message: str, store: Optional[str] = None, cause: Optional[BaseException] = None):
        details = {"store": store} if store else {}
        if cause is not None:
            details["cause"] = repr(cause)
        super().__init__(message, details=details)
        self.store = store
        self.__cause__ = cause
