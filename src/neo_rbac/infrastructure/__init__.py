"""
Infrastructure layer - Caches, store adapters and seed data.
"""

from .cache import MemoryPermissionCache, RedisPermissionCache, SingleFlight
from .stores import (
    InMemoryRoleStore,
    InMemoryAssignmentStore,
    AsyncPGRoleStore,
    AsyncPGAssignmentStore,
)
from .seed import DEFAULT_ROLES

__all__ = [
    "MemoryPermissionCache",
    "RedisPermissionCache",
    "SingleFlight",
    "InMemoryRoleStore",
    "InMemoryAssignmentStore",
    "AsyncPGRoleStore",
    "AsyncPGAssignmentStore",
    "DEFAULT_ROLES",
]
