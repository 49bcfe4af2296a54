"""Protocol interfaces for the external role and assignment stores.

Both stores are read-only from the engine's perspective. Implementations
raise ``StoreUnavailableError`` on I/O failure and return ``None``/empty
results for data that does not exist.
"""

from abc import abstractmethod
from typing import List, Optional, Protocol, runtime_checkable

from ..entities.role import Role, RoleAssignment


@runtime_checkable
class RoleStoreProtocol(Protocol):
    """Protocol for role definition lookups."""
    
    @abstractmethod
    async def get_role(self, role_id: str) -> Optional[Role]:
        """Get a role definition by id, or None if it does not exist."""
        ...


@runtime_checkable
class AssignmentStoreProtocol(Protocol):
    """Protocol for role assignment lookups."""
    
    @abstractmethod
    async def list_assignments(self, principal_id: str, organization_id: str) -> List[RoleAssignment]:
        """List every role assignment of a principal within an organization."""
        ...
