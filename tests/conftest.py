"""Pytest configuration and fixtures for neo-rbac tests."""

import pytest
from unittest.mock import AsyncMock

from neo_rbac.config.settings import RbacSettings
from neo_rbac.domain.entities.permission import Permission
from neo_rbac.domain.entities.role import Role, RoleAssignment, ScopeBinding
from neo_rbac.domain.value_objects.authorization_request import AuthorizationRequest
from neo_rbac.domain.value_objects.principal import Principal
from neo_rbac.application.services.authorization_service import AuthorizationService
from neo_rbac.infrastructure.cache.memory_permission_cache import MemoryPermissionCache
from neo_rbac.infrastructure.stores.memory_stores import InMemoryAssignmentStore, InMemoryRoleStore


ORG_ID = "org-1"


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return RbacSettings(
        _env_file=None,
        superadmin_role_id="platformAdmin",
        cache_ttl_seconds=None,
        cache_max_entries=None,
    )


@pytest.fixture
def principal():
    """Regular principal without a platform role."""
    return Principal(id="u1")


@pytest.fixture
def superadmin():
    """Principal carrying the platform super-admin marker."""
    return Principal(id="root", platform_role="platformAdmin")


@pytest.fixture
def branch_admin_role():
    """Branch-bound territory manager role."""
    return Role(
        id="branchAdmin",
        name="Branch Administrator",
        permissions=frozenset({
            Permission("territory", "manage", "branch", {"branchId": "{branchId}"}),
        }),
    )


@pytest.fixture
def role_store(branch_admin_role):
    """Role store holding the branch administrator role."""
    return InMemoryRoleStore([branch_admin_role])


@pytest.fixture
def default_role_store():
    """Role store seeded with the built-in catalogue."""
    return InMemoryRoleStore.with_default_roles()


@pytest.fixture
def assignment_store():
    """Assignment store binding u1 to branchAdmin on branch br-42."""
    return InMemoryAssignmentStore([
        RoleAssignment(
            principal_id="u1",
            organization_id=ORG_ID,
            role_id="branchAdmin",
            binding=ScopeBinding(branch_id="br-42"),
        ),
    ])


@pytest.fixture
def cache():
    return MemoryPermissionCache()


@pytest.fixture
def service(role_store, assignment_store, cache, settings):
    """Authorization service over the in-memory stores."""
    return AuthorizationService(role_store, assignment_store, cache=cache, settings=settings)


@pytest.fixture
def failing_assignment_store():
    """Assignment store whose reads always fail."""
    store = AsyncMock()
    store.list_assignments = AsyncMock(side_effect=ConnectionError("database unreachable"))
    return store


@pytest.fixture
def make_request(principal):
    """Factory for authorization requests in the default organization."""

    def _make(action, resource, scope=None, context=None, who=principal, organization_id=ORG_ID):
        return AuthorizationRequest(
            principal=who,
            organization_id=organization_id,
            action=action,
            resource=resource,
            scope=scope,
            context=context,
        )

    return _make
