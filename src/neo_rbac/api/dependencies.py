"""FastAPI dependency helpers for authorization checks.

Route handlers declare the permission they need; the dependency reads the
principal and organization placed on the request by the authentication layer,
builds the condition context from path parameters and server-side request
state, and raises an HTTP error when the check does not grant access.
"""

import logging
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from fastapi import Depends, HTTPException, Request, status

from ..application.services.authorization_service import AuthorizationService
from ..core.exceptions import ConfigurationError
from ..domain.entities.scope import Scope
from ..domain.value_objects.authorization_request import (
    AuthorizationRequest,
    ContextInput,
    RequestContext,
    as_request_context,
)
from ..domain.value_objects.decision import AuthorizationDecision
from ..domain.value_objects.principal import Principal


logger = logging.getLogger(__name__)

ORGANIZATION_HEADER = "X-Organization-Id"

ContextProvider = Callable[[Request], Awaitable[ContextInput]]

_authorization_service: Optional[AuthorizationService] = None


# Service wiring

def configure_authorization_service(service: Optional[AuthorizationService]) -> None:
    """Install the service used by the authorization dependencies."""
    global _authorization_service
    _authorization_service = service


def get_authorization_service() -> AuthorizationService:
    """Get the configured authorization service."""
    if _authorization_service is None:
        raise ConfigurationError("Authorization service is not configured")
    return _authorization_service


# Context Dependencies

def get_current_principal(request: Request) -> Optional[Principal]:
    """Get the authenticated principal from the request state."""
    principal = getattr(request.state, 'principal', None)
    if isinstance(principal, Principal):
        return principal

    claims = getattr(request.state, 'user_claims', None)
    if claims and (claims.get("sub") or claims.get("id")):
        return Principal.from_claims(claims)
    return None


def get_current_organization(request: Request) -> Optional[str]:
    """Get the organization id from the path, the request state or the header."""
    organization_id = (
        request.path_params.get("organization_id")
        or getattr(request.state, 'organization_id', None)
        or request.headers.get(ORGANIZATION_HEADER)
    )
    return str(organization_id) if organization_id else None


def get_request_context(request: Request) -> RequestContext:
    """Build the condition context from path parameters and request state.

    A context stored on ``request.state.rbac_context`` by a resource-loading
    dependency overrides path values. Query parameters are never read.
    """
    context = RequestContext.from_dict(request.path_params)
    stored = getattr(request.state, 'rbac_context', None)
    if stored is not None:
        context = context.merged(as_request_context(stored))
    return context


async def _resolve_context(request: Request, context_provider: Optional[ContextProvider]) -> RequestContext:
    context = get_request_context(request)
    if context_provider is not None:
        context = context.merged(as_request_context(await context_provider(request)))
    return context


def require_authentication(request: Request) -> Principal:
    """Require an authenticated principal, raise 401 if missing."""
    principal = get_current_principal(request)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return principal


def require_organization(request: Request) -> str:
    """Require an organization context, raise 400 if missing."""
    organization_id = get_current_organization(request)
    if not organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization context required"
        )
    return organization_id


def _raise_for_decision(decision: AuthorizationDecision, detail: str) -> None:
    if decision.granted:
        return
    logger.info(f"Access denied: {decision.request}: {decision.reason}")
    if decision.failed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Permission check unavailable"
        )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# Permission-Based Dependencies

def require_permission(
    action: str,
    resource: str,
    scope: Optional[Union[Scope, str]] = None,
    context_provider: Optional[ContextProvider] = None
):
    """Create a dependency that requires one permission.

    ``context_provider`` loads condition context (owner, target division,
    branch or territory) from server-side data for the request.

    Usage:
        async def territory_context(request: Request) -> RequestContext:
            territory = await territories.get(request.path_params["territory_id"])
            return RequestContext(target_territory_id=territory.id, resource_owner_id=territory.owner_id)

        @router.delete("/organizations/{organization_id}/territories/{territory_id}")
        async def delete_territory(
            principal: Principal = Depends(require_permission("delete", "territory", context_provider=territory_context))
        ):
            pass
    """
    scope = Scope.parse(scope) if scope is not None else None
    code = f"{resource}:{action}"

    async def _check_permission(
        request: Request,
        service: AuthorizationService = Depends(get_authorization_service)
    ) -> Principal:
        principal = require_authentication(request)
        organization_id = require_organization(request)

        decision = await service.authorize(AuthorizationRequest(
            principal=principal,
            organization_id=organization_id,
            action=action,
            resource=resource,
            scope=scope,
            context=await _resolve_context(request, context_provider)
        ))
        _raise_for_decision(decision, f"Permission required: {code}")
        return principal

    return _check_permission


def require_any_permission(
    permissions: List[Tuple[str, str]],
    context_provider: Optional[ContextProvider] = None
):
    """Create a dependency that requires any of the ``(action, resource)`` pairs."""
    codes = [f"{resource}:{action}" for action, resource in permissions]

    async def _check_any_permission(
        request: Request,
        service: AuthorizationService = Depends(get_authorization_service)
    ) -> Principal:
        principal = require_authentication(request)
        organization_id = require_organization(request)
        context = await _resolve_context(request, context_provider)

        decision = await service.authorize_any(principal, organization_id, permissions, context)
        _raise_for_decision(decision, f"One of these permissions required: {codes}")
        return principal

    return _check_any_permission


def require_all_permissions(
    permissions: List[Tuple[str, str]],
    context_provider: Optional[ContextProvider] = None
):
    """Create a dependency that requires every ``(action, resource)`` pair."""
    codes = [f"{resource}:{action}" for action, resource in permissions]

    async def _check_all_permissions(
        request: Request,
        service: AuthorizationService = Depends(get_authorization_service)
    ) -> Principal:
        principal = require_authentication(request)
        organization_id = require_organization(request)
        context = await _resolve_context(request, context_provider)

        decision = await service.authorize_all(principal, organization_id, permissions, context)
        _raise_for_decision(decision, f"All of these permissions required: {codes}")
        return principal

    return _check_all_permissions


def require_role(role_id: str):
    """Create a dependency that requires a role in the current organization."""

    async def _check_role(
        request: Request,
        service: AuthorizationService = Depends(get_authorization_service)
    ) -> Principal:
        principal = require_authentication(request)
        organization_id = require_organization(request)

        decision = await service.authorize_role(principal, organization_id, role_id)
        _raise_for_decision(decision, f"Role required: {role_id}")
        return principal

    return _check_role
