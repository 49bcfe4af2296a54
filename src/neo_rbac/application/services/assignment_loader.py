"""
Assignment loader - Reads a principal's role assignments from the store.

Failures are returned as an explicit failed result instead of being raised or
swallowed, so the authorization service can fail closed and still report the
cause.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...core.exceptions import NeoRbacError, StoreUnavailableError
from ...domain.entities.role import RoleAssignment
from ...domain.protocols.store_protocols import AssignmentStoreProtocol


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentLoadResult:
    """Outcome of one assignment read."""
    principal_id: str
    organization_id: str
    assignments: Tuple[RoleAssignment, ...] = field(default_factory=tuple)
    error: Optional[NeoRbacError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Tuple[RoleAssignment, ...]:
        """Return the assignments or raise the load error."""
        if self.error is not None:
            raise self.error
        return self.assignments

    @classmethod
    def success(cls, principal_id: str, organization_id: str, assignments: List[RoleAssignment]) -> "AssignmentLoadResult":
        return cls(principal_id=principal_id, organization_id=organization_id, assignments=tuple(assignments))

    @classmethod
    def failure(cls, principal_id: str, organization_id: str, error: NeoRbacError) -> "AssignmentLoadResult":
        return cls(principal_id=principal_id, organization_id=organization_id, error=error)


class AssignmentLoader:
    """Single-read loader over an assignment store."""
    
    def __init__(self, assignment_store: AssignmentStoreProtocol):
        self.assignment_store = assignment_store
    
    async def load_assignments(self, principal_id: str, organization_id: str) -> AssignmentLoadResult:
        """Load every role assignment of a principal within an organization."""
        try:
            assignments = await self.assignment_store.list_assignments(principal_id, organization_id)
        except NeoRbacError as e:
            logger.error(f"Failed to load assignments for {principal_id} in {organization_id}: {e}")
            return AssignmentLoadResult.failure(principal_id, organization_id, e)
        except Exception as e:
            logger.error(f"Unexpected error loading assignments for {principal_id} in {organization_id}: {e}")
            error = StoreUnavailableError(
                f"Assignment store failed: {e}",
                store="assignments",
                cause=e
            )
            return AssignmentLoadResult.failure(principal_id, organization_id, error)
        
        logger.debug(f"Loaded {len(assignments)} assignments for {principal_id} in {organization_id}")
        return AssignmentLoadResult.success(principal_id, organization_id, list(assignments or []))
