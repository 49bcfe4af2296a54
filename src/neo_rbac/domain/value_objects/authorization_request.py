"""
Authorization request value objects.

Immutable inputs to a single authorization check.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

from ..entities.scope import Scope
from .principal import Principal


@dataclass(frozen=True)
class RequestContext:
    """Request-time attributes used to evaluate permission conditions."""
    target_division_id: Optional[str] = None
    target_branch_id: Optional[str] = None
    target_territory_id: Optional[str] = None
    resource_owner_id: Optional[str] = None

    def target_for(self, condition_key: str) -> Optional[str]:
        """Get the target id matching a ``divisionId``/``branchId``/``territoryId`` condition."""
        return {
            "divisionId": self.target_division_id,
            "branchId": self.target_branch_id,
            "territoryId": self.target_territory_id,
        }.get(condition_key)

    def merged(self, other: "RequestContext") -> "RequestContext":
        """Overlay the fields ``other`` sets on top of this context."""
        updates = {f.name: getattr(other, f.name) for f in fields(other) if getattr(other, f.name) is not None}
        return replace(self, **updates)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RequestContext":
        """Build a context from camelCase or snake_case keys."""
        data = data or {}

        def pick(camel: str, snake: str) -> Optional[str]:
            value = data.get(camel, data.get(snake))
            return str(value) if value is not None else None

        return cls(
            target_division_id=pick("targetDivisionId", "target_division_id"),
            target_branch_id=pick("targetBranchId", "target_branch_id"),
            target_territory_id=pick("targetTerritoryId", "target_territory_id"),
            resource_owner_id=pick("resourceOwnerId", "resource_owner_id"),
        )


ContextInput = Union[RequestContext, Mapping[str, Any], None]


def as_request_context(context: ContextInput) -> RequestContext:
    if isinstance(context, RequestContext):
        return context
    return RequestContext.from_dict(context)


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    Immutable authorization check request.

    ``scope`` is optional; when absent the check is not scope-filtered.
    """
    principal: Optional[Principal]
    organization_id: str
    action: str
    resource: str
    scope: Optional[Scope] = None
    context: RequestContext = field(default_factory=RequestContext)

    def __post_init__(self):
        if self.scope is not None:
            object.__setattr__(self, 'scope', Scope.parse(self.scope))
        if not isinstance(self.context, RequestContext):
            object.__setattr__(self, 'context', as_request_context(self.context))

    @property
    def principal_id(self) -> Optional[str]:
        return self.principal.id if self.principal else None

    @property
    def code(self) -> str:
        return f"{self.resource}:{self.action}"

    def describe(self) -> Dict[str, Any]:
        """Loggable summary of the request."""
        return {
            "principal_id": self.principal_id,
            "organization_id": self.organization_id,
            "permission": self.code,
            "scope": self.scope.value if self.scope else None,
        }

    def __str__(self) -> str:
        scope = f"@{self.scope.value}" if self.scope else ""
        return f"{self.code}{scope} for {self.principal_id} in {self.organization_id}"
