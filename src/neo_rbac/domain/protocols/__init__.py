"""Protocols for neo-rbac collaborators."""

from .store_protocols import RoleStoreProtocol, AssignmentStoreProtocol
from .cache_protocols import PermissionCacheProtocol, PermissionSetLoader

__all__ = [
    "RoleStoreProtocol",
    "AssignmentStoreProtocol",
    "PermissionCacheProtocol",
    "PermissionSetLoader",
]
