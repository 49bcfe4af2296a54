"""Infrastructure-specific exceptions for neo-rbac."""

from .base import NeoRbacError


# Cache Errors
class CacheError(NeoRbacError):
    """Base class for cache-related errors."""
    pass


class CacheKeyMismatchError(CacheError):
    """Raised when a loaded permission set belongs to a different key than requested."""
    pass
