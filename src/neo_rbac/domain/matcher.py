"""
Permission matcher - Pure decision of whether one grant covers one request.

A granted permission matches a request when all of the following hold:

1. resource: ``"*"`` or equal to the requested resource
2. action: ``"*"``, ``"manage"`` or equal to the requested action
   (``"manage"`` implies concrete actions only, never a ``"*"`` request)
3. scope: the request carries no scope, or the granted scope is broader than
   or equal to the requested one
4. conditions: every condition is satisfied by the request context

Missing context data or unresolved condition values make a condition fail.
Nothing here raises.
"""
from typing import Iterable, Optional

from .entities.permission import (
    MANAGE,
    SCOPE_ID_KEYS,
    UNRESOLVED,
    WILDCARD,
    ConditionKey,
    Permission,
    is_placeholder,
)
from .entities.scope import broader_or_equal
from .value_objects.authorization_request import AuthorizationRequest


def resource_matches(granted: Permission, requested_resource: str) -> bool:
    return granted.resource == WILDCARD or granted.resource == requested_resource


def action_matches(granted: Permission, requested_action: str) -> bool:
    if granted.action == WILDCARD:
        return True
    if granted.action == MANAGE:
        return bool(requested_action) and requested_action != WILDCARD
    return granted.action == requested_action


def scope_matches(granted: Permission, request: AuthorizationRequest) -> bool:
    if request.scope is None:
        return True
    return broader_or_equal(granted.scope, request.scope)


def conditions_match(granted: Permission, request: AuthorizationRequest) -> bool:
    """Check every condition of ``granted`` against the request context."""
    for key, value in granted.conditions.items():
        if key == ConditionKey.OWN_ONLY.value:
            if value is True and not _owns_resource(request):
                return False
        elif key in SCOPE_ID_KEYS:
            if value is UNRESOLVED or is_placeholder(value):
                return False
            if request.context.target_for(key) != value:
                return False
        else:
            return False
    return True


def _owns_resource(request: AuthorizationRequest) -> bool:
    owner_id = request.context.resource_owner_id
    return owner_id is not None and request.principal is not None and owner_id == request.principal.id


def matches(granted: Permission, request: AuthorizationRequest) -> bool:
    """Decide whether a granted permission authorizes the request."""
    return (
        resource_matches(granted, request.resource)
        and action_matches(granted, request.action)
        and scope_matches(granted, request)
        and conditions_match(granted, request)
    )


def first_match(permissions: Iterable[Permission], request: AuthorizationRequest) -> Optional[Permission]:
    """Return the first permission matching the request, short-circuiting."""
    for permission in permissions:
        if matches(permission, request):
            return permission
    return None
