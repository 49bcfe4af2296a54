"""
Permission gate - Tri-state view of a permission check for UI layers.

A gate starts in ``LOADING`` and settles on ``ALLOWED`` or ``DENIED`` once a
check completes. Errors settle on ``DENIED``; a gate never raises from a check.
"""
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, TypeVar, Union

from ...core.exceptions import NeoRbacError
from ...domain.entities.permission import Permission
from ...domain.entities.scope import Scope
from ...domain.value_objects.authorization_request import AuthorizationRequest, ContextInput
from ...domain.value_objects.decision import AuthorizationDecision
from ...domain.value_objects.principal import Principal
from .authorization_service import AuthorizationService


logger = logging.getLogger(__name__)

T = TypeVar("T")

GatePermission = Union[Permission, Mapping[str, Any], Tuple[str, str]]


class GateState(str, Enum):
    LOADING = "loading"
    ALLOWED = "allowed"
    DENIED = "denied"


class PermissionGate:
    """
    Permission gate bound to one principal in one organization.

    Example:
        gate = PermissionGate(service, principal, "org-1")
        if await gate.can_update("territory", {"targetBranchId": "b-1"}):
            ...
        gate.select(allowed=page, denied=redirect, loading=spinner)
    """

    def __init__(self, service: AuthorizationService, principal: Optional[Principal], organization_id: str):
        self.service = service
        self.principal = principal
        self.organization_id = organization_id
        self._state = GateState.LOADING
        self._pending = 0
        self._last_decision: Optional[AuthorizationDecision] = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._pending > 0 or self._state is GateState.LOADING

    @property
    def last_decision(self) -> Optional[AuthorizationDecision]:
        return self._last_decision

    async def check_permission(self, permission: GatePermission, context: ContextInput = None) -> bool:
        """Run a check and settle the gate on its outcome."""
        self._pending += 1
        self._state = GateState.LOADING
        try:
            decision = await self._authorize(permission, context)
        finally:
            self._pending -= 1

        self._last_decision = decision
        self._state = GateState.ALLOWED if decision.granted else GateState.DENIED
        return decision.granted

    async def _authorize(self, permission: GatePermission, context: ContextInput) -> AuthorizationDecision:
        try:
            action, resource, scope = _unpack(permission)
            request = AuthorizationRequest(
                principal=self.principal,
                organization_id=self.organization_id,
                action=action,
                resource=resource,
                scope=scope,
                context=context
            )
        except (NeoRbacError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Invalid permission passed to gate: {permission!r}: {e}")
            return AuthorizationDecision.deny(
                AuthorizationRequest(self.principal, self.organization_id, "", ""),
                reason="Invalid permission",
                error=e
            )
        return await self.service.authorize(request)

    def select(self, allowed: T, denied: T, loading: Optional[T] = None) -> Optional[T]:
        """Pick the value to render for the current state."""
        if self.loading:
            return loading
        return allowed if self._state is GateState.ALLOWED else denied

    # Action helpers

    async def can_manage(self, resource: str, context: ContextInput = None) -> bool:
        return await self.check_permission(("manage", resource), context)

    async def can_read(self, resource: str, context: ContextInput = None) -> bool:
        return await self.check_permission(("read", resource), context)

    async def can_create(self, resource: str, context: ContextInput = None) -> bool:
        return await self.check_permission(("create", resource), context)

    async def can_update(self, resource: str, context: ContextInput = None) -> bool:
        return await self.check_permission(("update", resource), context)

    async def can_delete(self, resource: str, context: ContextInput = None) -> bool:
        return await self.check_permission(("delete", resource), context)


def _unpack(permission: GatePermission) -> Tuple[str, str, Optional[Scope]]:
    if isinstance(permission, Permission):
        return permission.action, permission.resource, permission.scope
    if isinstance(permission, Mapping):
        scope = permission.get("scope")
        return permission["action"], permission["resource"], Scope.parse(scope) if scope else None
    action, resource = permission
    return action, resource, None
