"""In-memory role and assignment stores.

Used for seeding, tests and single-process deployments. Writes go through the
owning application, which must invalidate the permission cache afterwards.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ...domain.entities.role import Role, RoleAssignment
from ...domain.protocols.store_protocols import AssignmentStoreProtocol, RoleStoreProtocol


logger = logging.getLogger(__name__)


class InMemoryRoleStore(RoleStoreProtocol):
    """Role definitions held in a dict keyed by role id."""
    
    def __init__(self, roles: Iterable[Role] = ()):
        self._roles: Dict[str, Role] = {}
        self.reads = 0
        for role in roles:
            self.put_role(role)
    
    async def get_role(self, role_id: str) -> Optional[Role]:
        self.reads += 1
        return self._roles.get(role_id)
    
    def put_role(self, role: Role) -> None:
        """Add or replace a role definition."""
        self._roles[role.id] = role
    
    def remove_role(self, role_id: str) -> bool:
        return self._roles.pop(role_id, None) is not None
    
    def role_ids(self) -> List[str]:
        return sorted(self._roles)
    
    @classmethod
    def with_default_roles(cls) -> "InMemoryRoleStore":
        """Create a store seeded with the built-in role catalogue."""
        from ..seed.default_roles import DEFAULT_ROLES
        return cls(DEFAULT_ROLES)


class InMemoryAssignmentStore(AssignmentStoreProtocol):
    """Role assignments grouped by ``(principal_id, organization_id)``."""
    
    def __init__(self, assignments: Iterable[RoleAssignment] = ()):
        self._assignments: Dict[Tuple[str, str], List[RoleAssignment]] = defaultdict(list)
        self.reads = 0
        for assignment in assignments:
            self.add(assignment)
    
    async def list_assignments(self, principal_id: str, organization_id: str) -> List[RoleAssignment]:
        self.reads += 1
        return list(self._assignments.get((principal_id, organization_id), ()))
    
    def add(self, assignment: RoleAssignment) -> None:
        self._assignments[(assignment.principal_id, assignment.organization_id)].append(assignment)
    
    def remove(self, principal_id: str, organization_id: str, role_id: str) -> int:
        """Remove every assignment of ``role_id`` to the principal in the organization."""
        key = (principal_id, organization_id)
        current = self._assignments.get(key, [])
        kept = [a for a in current if a.role_id != role_id]
        removed = len(current) - len(kept)
        if kept:
            self._assignments[key] = kept
        else:
            self._assignments.pop(key, None)
        return removed
    
    def principals_with_role(self, role_id: str) -> List[Tuple[str, str]]:
        """Keys of every principal/organization pair holding ``role_id`` directly."""
        return sorted(
            key for key, assignments in self._assignments.items()
            if any(a.role_id == role_id for a in assignments)
        )
