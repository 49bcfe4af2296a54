"""Role and assignment store adapters."""

from .memory_stores import InMemoryRoleStore, InMemoryAssignmentStore
from .asyncpg_stores import AsyncPGRoleStore, AsyncPGAssignmentStore

__all__ = [
    "InMemoryRoleStore",
    "InMemoryAssignmentStore",
    "AsyncPGRoleStore",
    "AsyncPGAssignmentStore",
]
