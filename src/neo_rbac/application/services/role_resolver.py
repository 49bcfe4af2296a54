"""
Role resolver - Expands role assignments into flattened permission sets.

Inheritance is expanded depth-first in declaration order with a visited set
keyed by role id, so resolution terminates on any input, including cyclic
inheritance, and repeated resolutions of the same data give the same result.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ...domain.entities.effective_permission_set import EffectivePermissionSet
from ...domain.entities.permission import UNRESOLVED, Permission
from ...domain.entities.role import RoleAssignment, ScopeBinding
from ...domain.protocols.store_protocols import RoleStoreProtocol


logger = logging.getLogger(__name__)


def substitute_placeholders(permission: Permission, binding: ScopeBinding) -> Permission:
    """
    Replace ``{divisionId}``-style tokens in conditions with bound values.

    Tokens the binding cannot satisfy become ``UNRESOLVED``, which the matcher
    treats as a failed condition.
    """
    placeholders = permission.conditions.placeholders
    if not placeholders:
        return permission

    values = binding.placeholder_values()
    conditions = dict(permission.conditions)
    for key, token in placeholders.items():
        conditions[key] = values.get(token[1:-1], UNRESOLVED)
    return permission.with_conditions(conditions)


@dataclass
class _ResolutionPass:
    """Mutable state of one resolution, threaded through the recursion."""
    binding: ScopeBinding
    visited: Set[str] = field(default_factory=set)
    stack: List[str] = field(default_factory=list)
    found: Set[str] = field(default_factory=set)
    permissions: Dict[Permission, None] = field(default_factory=dict)
    cycle_logged: bool = False


class RoleResolver:
    """
    Resolves role assignments against a role store.

    Missing roles contribute nothing and are logged at DEBUG. Store failures
    propagate to the caller.
    """

    def __init__(self, role_store: RoleStoreProtocol):
        self.role_store = role_store

    async def resolve(self, assignment: RoleAssignment, organization_id: str) -> FrozenSet[Permission]:
        """Resolve one assignment (recursively through ``inherits``) into its permissions."""
        permissions, _ = await self._resolve_ordered(assignment, organization_id)
        return frozenset(permissions)

    async def resolve_all(
        self,
        principal_id: str,
        organization_id: str,
        assignments: Iterable[RoleAssignment],
        now: Optional[datetime] = None
    ) -> EffectivePermissionSet:
        """
        Resolve every assignment of a principal into one effective set.

        Expired assignments and assignments for another principal or
        organization are skipped. Each assignment is resolved independently
        because placeholder substitution depends on its own binding.
        """
        permissions: Dict[Permission, None] = {}
        role_ids: Set[str] = set()

        for assignment in assignments:
            if assignment.principal_id != principal_id:
                logger.warning(
                    f"Skipping assignment {assignment} loaded for principal {principal_id}"
                )
                continue
            if assignment.is_expired(now):
                logger.debug(f"Skipping expired assignment {assignment}")
                continue

            resolved, visited = await self._resolve_ordered(assignment, organization_id)
            permissions.update(dict.fromkeys(resolved))
            role_ids.update(visited)

        return EffectivePermissionSet.build(
            principal_id=principal_id,
            organization_id=organization_id,
            permissions=permissions,
            role_ids=role_ids
        )

    async def _resolve_ordered(
        self,
        assignment: RoleAssignment,
        organization_id: str
    ) -> Tuple[Tuple[Permission, ...], FrozenSet[str]]:
        if assignment.organization_id != organization_id:
            logger.warning(
                f"Assignment {assignment} does not belong to organization {organization_id}, ignoring"
            )
            return (), frozenset()

        resolution = _ResolutionPass(binding=assignment.binding)
        await self._expand(assignment.role_id, resolution)
        return tuple(resolution.permissions), frozenset(resolution.found)

    async def _expand(self, role_id: str, resolution: _ResolutionPass) -> None:
        # Marked before any await so re-entry through a cycle stops here
        resolution.visited.add(role_id)

        role = await self.role_store.get_role(role_id)
        if role is None:
            logger.debug(f"Role {role_id} not found, contributing no permissions")
            return

        resolution.found.add(role_id)
        for permission in sorted(role.permissions, key=_stable_order):
            resolution.permissions.setdefault(substitute_placeholders(permission, resolution.binding), None)

        resolution.stack.append(role_id)
        try:
            for inherited_id in role.inherits:
                if inherited_id in resolution.visited:
                    self._note_revisit(role_id, inherited_id, resolution)
                    continue
                await self._expand(inherited_id, resolution)
        finally:
            resolution.stack.pop()

    def _note_revisit(self, role_id: str, inherited_id: str, resolution: _ResolutionPass) -> None:
        if inherited_id in resolution.stack:
            if not resolution.cycle_logged:
                cycle = " -> ".join(resolution.stack[resolution.stack.index(inherited_id):] + [inherited_id])
                logger.warning(f"Role inheritance cycle detected: {cycle}")
                resolution.cycle_logged = True
        else:
            logger.debug(f"Role {inherited_id} already resolved, skipping repeat via {role_id}")


def _stable_order(permission: Permission) -> Tuple[str, str, int, str]:
    return (
        permission.resource,
        permission.action,
        permission.scope.rank,
        repr(sorted((key, str(value)) for key, value in permission.conditions.items())),
    )
