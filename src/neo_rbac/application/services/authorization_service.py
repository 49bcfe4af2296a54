"""
Authorization service - Entry point for permission checks.

Orchestrates the platform super-admin bypass, the effective permission cache,
assignment loading, role resolution and permission matching. Every failure is
turned into a deny decision here; nothing is raised to callers.
"""
import logging
from typing import Iterable, Iterator, Optional, Tuple, Union

from ...config.settings import RbacSettings, get_settings
from ...core.exceptions import RoleNotFoundError
from ...domain.entities.effective_permission_set import EffectivePermissionSet, make_cache_key
from ...domain.entities.permission import Permission
from ...domain.entities.role import Role
from ...domain.entities.scope import Scope
from ...domain.matcher import matches
from ...domain.protocols.cache_protocols import PermissionCacheProtocol
from ...domain.protocols.store_protocols import AssignmentStoreProtocol, RoleStoreProtocol
from ...domain.value_objects.authorization_request import AuthorizationRequest, ContextInput
from ...domain.value_objects.decision import AuthorizationDecision
from ...domain.value_objects.principal import Principal
from ...infrastructure.cache.memory_permission_cache import MemoryPermissionCache
from .assignment_loader import AssignmentLoader
from .role_resolver import RoleResolver


logger = logging.getLogger(__name__)

RequiredPermission = Union[Permission, Tuple[str, str]]


class AuthorizationService:
    """
    Scoped RBAC authorization service.

    Features:
    - Platform super-admin bypass
    - Per ``(principal, organization)`` effective permission cache with single-flight loads
    - Wildcard, manage and scope-breadth matching with fail-closed conditions
    - Decision traces for diagnostics and audit
    """

    def __init__(
        self,
        role_store: RoleStoreProtocol,
        assignment_store: AssignmentStoreProtocol,
        cache: Optional[PermissionCacheProtocol] = None,
        settings: Optional[RbacSettings] = None
    ):
        self.settings = settings or get_settings()
        self.resolver = RoleResolver(role_store)
        self.loader = AssignmentLoader(assignment_store)
        self.cache = cache if cache is not None else MemoryPermissionCache.from_settings(self.settings)

    # Checks

    async def authorize(self, request: AuthorizationRequest) -> AuthorizationDecision:
        """Evaluate a request and return the decision with its trace."""
        principal = request.principal
        if principal is None:
            return AuthorizationDecision.deny(request, reason="No authenticated principal")

        if principal.is_superadmin(self.settings.superadmin_role_id):
            logger.debug(f"Platform super-admin bypass for {request}")
            return AuthorizationDecision.allow(request, reason="Platform super-admin", bypass=True)

        try:
            permissions = await self.effective_permissions(principal.id, request.organization_id)
        except Exception as e:
            logger.error(f"Denying {request}: permissions could not be loaded: {e}")
            return AuthorizationDecision.deny(request, reason="Permissions unavailable", error=e)

        for index, permission in enumerate(permissions, start=1):
            if matches(permission, request):
                logger.debug(f"Granted {request} by {permission!r}")
                return AuthorizationDecision.allow(
                    request,
                    matched_permission=permission,
                    reason=f"Matched {permission.code}",
                    evaluated_permissions=index
                )

        logger.debug(f"Denied {request}: no matching permission among {len(permissions)}")
        return AuthorizationDecision.deny(
            request,
            reason="No matching permission",
            evaluated_permissions=len(permissions)
        )

    async def is_authorized(self, request: AuthorizationRequest) -> bool:
        """Check a request; True only when access is granted."""
        decision = await self.authorize(request)
        return decision.granted

    async def check(
        self,
        principal: Optional[Principal],
        organization_id: str,
        action: str,
        resource: str,
        scope: Optional[Union[Scope, str]] = None,
        context: ContextInput = None
    ) -> bool:
        """
        Convenience wrapper building the request from its parts.

        Raises ``InvalidPermissionError`` for an unknown scope.
        """
        request = AuthorizationRequest(
            principal=principal,
            organization_id=organization_id,
            action=action,
            resource=resource,
            scope=scope,
            context=context
        )
        return await self.is_authorized(request)

    async def has_any(
        self,
        principal: Optional[Principal],
        organization_id: str,
        required: Iterable[RequiredPermission],
        context: ContextInput = None
    ) -> bool:
        """Check if the principal holds any of the required permissions."""
        decision = await self.authorize_any(principal, organization_id, required, context)
        return decision.granted

    async def has_all(
        self,
        principal: Optional[Principal],
        organization_id: str,
        required: Iterable[RequiredPermission],
        context: ContextInput = None
    ) -> bool:
        """Check if the principal holds every required permission (vacuously true when empty)."""
        decision = await self.authorize_all(principal, organization_id, required, context)
        return decision.granted

    async def has_role(self, principal: Optional[Principal], organization_id: str, role_id: str) -> bool:
        """Check if the principal holds a role, directly or through inheritance."""
        decision = await self.authorize_role(principal, organization_id, role_id)
        return decision.granted

    async def authorize_any(
        self,
        principal: Optional[Principal],
        organization_id: str,
        required: Iterable[RequiredPermission],
        context: ContextInput = None
    ) -> AuthorizationDecision:
        """
        Decide whether the principal holds any of the required permissions.

        Returns the first granting decision. Otherwise returns the first failed
        decision when a check could not be evaluated, else the last denial.
        """
        failure: Optional[AuthorizationDecision] = None
        last: Optional[AuthorizationDecision] = None
        for request in _build_requests(principal, organization_id, required, context):
            decision = await self.authorize(request)
            if decision.granted:
                return decision
            if decision.failed and failure is None:
                failure = decision
            last = decision

        if failure is not None:
            return failure
        if last is not None:
            return last
        return AuthorizationDecision.deny(
            _bare_request(principal, organization_id),
            reason="No permissions to check"
        )

    async def authorize_all(
        self,
        principal: Optional[Principal],
        organization_id: str,
        required: Iterable[RequiredPermission],
        context: ContextInput = None
    ) -> AuthorizationDecision:
        """Decide whether the principal holds every required permission; the first denial wins."""
        decision: Optional[AuthorizationDecision] = None
        for request in _build_requests(principal, organization_id, required, context):
            decision = await self.authorize(request)
            if decision.denied:
                return decision

        if decision is None:
            return AuthorizationDecision.allow(
                _bare_request(principal, organization_id),
                reason="No permissions required"
            )
        return decision

    async def authorize_role(
        self,
        principal: Optional[Principal],
        organization_id: str,
        role_id: str
    ) -> AuthorizationDecision:
        """Decide whether the principal holds a role, directly or through inheritance."""
        request = _bare_request(principal, organization_id)
        if principal is None:
            return AuthorizationDecision.deny(request, reason="No authenticated principal")
        if principal.is_superadmin(self.settings.superadmin_role_id):
            return AuthorizationDecision.allow(request, reason="Platform super-admin", bypass=True)

        try:
            permissions = await self.effective_permissions(principal.id, organization_id)
        except Exception as e:
            logger.error(f"Role check {role_id} for {principal.id} in {organization_id} failed: {e}")
            return AuthorizationDecision.deny(request, reason="Permissions unavailable", error=e)

        if role_id in permissions.role_ids:
            return AuthorizationDecision.allow(request, reason=f"Holds role {role_id}")
        return AuthorizationDecision.deny(request, reason=f"Role {role_id} not held")

    async def get_role(self, role_id: str) -> Role:
        """Get a role definition, raising ``RoleNotFoundError`` if it does not exist."""
        role = await self.resolver.role_store.get_role(role_id)
        if role is None:
            raise RoleNotFoundError(role_id)
        return role

    # Effective permissions

    async def effective_permissions(self, principal_id: str, organization_id: str) -> EffectivePermissionSet:
        """
        Get the principal's effective permission set, loading it on a cache miss.

        Raises the loader's error when the assignment store is unavailable.
        """
        key = make_cache_key(principal_id, organization_id)
        return await self.cache.get_or_load(
            key,
            lambda: self._load_effective_set(principal_id, organization_id)
        )

    async def _load_effective_set(self, principal_id: str, organization_id: str) -> EffectivePermissionSet:
        result = await self.loader.load_assignments(principal_id, organization_id)
        assignments = result.unwrap()
        effective = await self.resolver.resolve_all(principal_id, organization_id, assignments)
        logger.debug(
            f"Resolved {len(effective)} permissions from {len(effective.role_ids)} roles "
            f"for {principal_id} in {organization_id}"
        )
        return effective

    # Invalidation

    async def invalidate(self, principal_id: str, organization_id: str) -> None:
        """Invalidate after an assignment change for one principal in one organization."""
        await self.cache.invalidate(make_cache_key(principal_id, organization_id))

    async def invalidate_principal(self, principal_id: str) -> None:
        """Invalidate a principal everywhere, e.g. on logout."""
        await self.cache.invalidate_principal(principal_id)

    async def invalidate_organization(self, organization_id: str) -> None:
        """Invalidate an organization, e.g. after a role definition change."""
        await self.cache.invalidate_organization(organization_id)

    async def invalidate_all(self) -> None:
        """Invalidate everything, e.g. after a global role definition change."""
        await self.cache.invalidate_all()


def _build_requests(
    principal: Optional[Principal],
    organization_id: str,
    required: Iterable[RequiredPermission],
    context: ContextInput
) -> Iterator[AuthorizationRequest]:
    for item in required:
        if isinstance(item, Permission):
            action, resource, scope = item.action, item.resource, item.scope
        else:
            action, resource = item
            scope = None
        yield AuthorizationRequest(
            principal=principal,
            organization_id=organization_id,
            action=action,
            resource=resource,
            scope=scope,
            context=context
        )


def _bare_request(principal: Optional[Principal], organization_id: str) -> AuthorizationRequest:
    return AuthorizationRequest(principal, organization_id, "", "")
