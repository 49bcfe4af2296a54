"""Tests for the authorization service facade."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from neo_rbac.application.services.authorization_service import AuthorizationService
from neo_rbac.config.settings import RbacSettings
from neo_rbac.core.exceptions import RoleNotFoundError, StoreUnavailableError
from neo_rbac.domain.entities.permission import Permission
from neo_rbac.domain.entities.role import Role, RoleAssignment, ScopeBinding
from neo_rbac.domain.value_objects.principal import Principal
from neo_rbac.infrastructure.stores.memory_stores import InMemoryAssignmentStore, InMemoryRoleStore


class SlowAssignmentStore(InMemoryAssignmentStore):
    """Assignment store that yields to the event loop before answering."""

    async def list_assignments(self, principal_id, organization_id):
        await asyncio.sleep(0.01)
        return await super().list_assignments(principal_id, organization_id)


class TestBranchAdminScenario:
    """Branch-bound territory management."""

    @pytest.mark.asyncio
    async def test_matching_branch_is_allowed(self, service, make_request):
        decision = await service.authorize(
            make_request("update", "territory", "branch", {"targetBranchId": "br-42"})
        )
        assert decision.granted
        assert decision.matched_permission.code == "territory:manage"
        assert decision.matched_permission.conditions["branchId"] == "br-42"
        assert not decision.bypass

    @pytest.mark.asyncio
    async def test_other_branch_is_denied(self, service, make_request):
        decision = await service.authorize(
            make_request("update", "territory", "branch", {"targetBranchId": "br-99"})
        )
        assert decision.denied
        assert not decision.failed
        assert decision.evaluated_permissions == 1

    @pytest.mark.asyncio
    async def test_broader_requested_scope_is_denied(self, service, make_request):
        assert not await service.is_authorized(
            make_request("update", "territory", "division", {"targetBranchId": "br-42"})
        )

    @pytest.mark.asyncio
    async def test_check_convenience(self, service, principal):
        assert await service.check(principal, "org-1", "delete", "territory", "territory",
                                   {"targetBranchId": "br-42"})
        assert not await service.check(principal, "org-2", "delete", "territory", "territory",
                                       {"targetBranchId": "br-42"})


class TestFailClosed:

    @pytest.mark.asyncio
    async def test_missing_principal_is_denied(self, service, make_request):
        decision = await service.authorize(make_request("read", "territory", who=None))
        assert decision.denied
        assert decision.reason == "No authenticated principal"

    @pytest.mark.asyncio
    async def test_principal_without_assignments_is_denied(self, service, make_request):
        assert not await service.is_authorized(make_request("read", "territory", who=Principal(id="nobody")))

    @pytest.mark.asyncio
    async def test_unbound_placeholder_never_matches(self, settings, make_request):
        roles = InMemoryRoleStore([
            Role(id="divisionAdmin", name="Division Administrator", permissions=frozenset({
                Permission("user", "manage", "division", {"divisionId": "{divisionId}"}),
            })),
        ])
        assignments = InMemoryAssignmentStore([
            RoleAssignment("u1", "org-1", "divisionAdmin", ScopeBinding(branch_id="br-1")),
        ])
        service = AuthorizationService(roles, assignments, settings=settings)

        for context in [{}, {"targetDivisionId": "{divisionId}"}, {"targetDivisionId": "d1"}]:
            assert not await service.is_authorized(make_request("read", "user", context=context))

    @pytest.mark.asyncio
    async def test_store_failure_denies_with_error(self, role_store, failing_assignment_store, settings, make_request, caplog):
        service = AuthorizationService(role_store, failing_assignment_store, settings=settings)

        with caplog.at_level(logging.ERROR):
            decision = await service.authorize(make_request("read", "territory"))

        assert decision.denied
        assert decision.failed
        assert isinstance(decision.error, StoreUnavailableError)
        assert any(record.levelno == logging.ERROR for record in caplog.records)

    @pytest.mark.asyncio
    async def test_store_failure_is_not_cached(self, role_store, assignment_store, settings, make_request):
        original = assignment_store.list_assignments
        assignment_store.list_assignments = AsyncMock(side_effect=ConnectionError("down"))
        service = AuthorizationService(role_store, assignment_store, settings=settings)
        request = make_request("update", "territory", "branch", {"targetBranchId": "br-42"})

        assert not await service.is_authorized(request)

        assignment_store.list_assignments = original
        assert await service.is_authorized(request)

    @pytest.mark.asyncio
    async def test_role_store_failure_denies(self, assignment_store, settings, make_request):
        roles = AsyncMock()
        roles.get_role = AsyncMock(side_effect=StoreUnavailableError("roles down", store="roles"))
        service = AuthorizationService(roles, assignment_store, settings=settings)

        decision = await service.authorize(make_request("read", "territory"))
        assert decision.failed


class TestPlatformBypass:

    @pytest.mark.asyncio
    async def test_superadmin_is_allowed_without_permissions(self, service, superadmin, make_request, assignment_store):
        decision = await service.authorize(make_request("purge", "galaxy", "platform", who=superadmin))

        assert decision.granted
        assert decision.bypass
        assert decision.matched_permission is None
        assert assignment_store.reads == 0

    @pytest.mark.asyncio
    async def test_superadmin_marker_comes_from_settings(self, role_store, assignment_store, make_request):
        settings = RbacSettings(_env_file=None, superadmin_role_id="root")
        service = AuthorizationService(role_store, assignment_store, settings=settings)

        assert await service.is_authorized(make_request("read", "x", who=Principal("a", platform_role="root")))
        assert not await service.is_authorized(
            make_request("read", "x", who=Principal("b", platform_role="platformAdmin"))
        )

    @pytest.mark.asyncio
    async def test_superadmin_holds_every_role(self, service, superadmin):
        assert await service.has_role(superadmin, "org-1", "anything")


class TestCaching:

    @pytest.mark.asyncio
    async def test_concurrent_checks_load_assignments_once(self, role_store, settings, make_request):
        assignments = SlowAssignmentStore([
            RoleAssignment("u1", "org-1", "branchAdmin", ScopeBinding(branch_id="br-42")),
        ])
        service = AuthorizationService(role_store, assignments, settings=settings)
        request = make_request("update", "territory", "branch", {"targetBranchId": "br-42"})

        results = await asyncio.gather(*[service.is_authorized(request) for _ in range(50)])

        assert all(results)
        assert assignments.reads == 1

    @pytest.mark.asyncio
    async def test_cached_set_reused_across_requests(self, service, assignment_store, make_request):
        await service.is_authorized(make_request("read", "territory"))
        await service.is_authorized(make_request("update", "user"))
        assert assignment_store.reads == 1

    @pytest.mark.asyncio
    async def test_invalidate_after_assignment_change(self, service, assignment_store, principal, make_request):
        request = make_request("update", "territory", "branch", {"targetBranchId": "br-42"})
        assert await service.is_authorized(request)

        assignment_store.remove("u1", "org-1", "branchAdmin")
        assert await service.is_authorized(request)

        await service.invalidate("u1", "org-1")
        assert not await service.is_authorized(request)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,argument", [
        ("invalidate_principal", "u1"),
        ("invalidate_organization", "org-1"),
        ("invalidate_all", None),
    ])
    async def test_broad_invalidation(self, service, assignment_store, make_request, method, argument):
        request = make_request("read", "territory")
        await service.is_authorized(request)

        invalidate = getattr(service, method)
        await (invalidate(argument) if argument else invalidate())
        await service.is_authorized(request)

        assert assignment_store.reads == 2

    @pytest.mark.asyncio
    async def test_default_cache_is_per_service(self, role_store, assignment_store, settings, make_request):
        first = AuthorizationService(role_store, assignment_store, settings=settings)
        second = AuthorizationService(role_store, assignment_store, settings=settings)
        assert first.cache is not second.cache


class TestAggregateChecks:

    @pytest.mark.asyncio
    async def test_has_any_and_has_all(self, service, principal):
        context = {"targetBranchId": "br-42"}
        assert await service.has_any(principal, "org-1", [("read", "user"), ("read", "territory")], context)
        assert not await service.has_all(principal, "org-1", [("read", "user"), ("read", "territory")], context)
        assert await service.has_all(principal, "org-1", [], context)
        assert not await service.has_any(principal, "org-1", [], context)

    @pytest.mark.asyncio
    async def test_permission_objects_carry_scope(self, service, principal):
        context = {"targetBranchId": "br-42"}
        assert await service.has_all(principal, "org-1", [Permission("territory", "read", "branch")], context)
        assert not await service.has_any(principal, "org-1", [Permission("territory", "read", "division")], context)

    @pytest.mark.asyncio
    async def test_has_role(self, service, principal):
        assert await service.has_role(principal, "org-1", "branchAdmin")
        assert not await service.has_role(principal, "org-1", "orgAdmin")
        assert not await service.has_role(None, "org-1", "branchAdmin")

    @pytest.mark.asyncio
    async def test_aggregate_decisions_report_store_failure(
        self, role_store, failing_assignment_store, settings, principal
    ):
        service = AuthorizationService(role_store, failing_assignment_store, settings=settings)
        required = [("read", "report"), ("read", "territory")]

        decisions = [
            await service.authorize_any(principal, "org-1", required),
            await service.authorize_all(principal, "org-1", required),
            await service.authorize_role(principal, "org-1", "branchAdmin"),
        ]

        assert all(decision.denied and decision.failed for decision in decisions)
        assert all(isinstance(decision.error, StoreUnavailableError) for decision in decisions)

    @pytest.mark.asyncio
    async def test_aggregate_decisions_keep_match_trace(self, service, principal):
        context = {"targetBranchId": "br-42"}

        granted = await service.authorize_any(principal, "org-1", [("read", "user"), ("read", "territory")], context)
        denied = await service.authorize_all(principal, "org-1", [("read", "territory"), ("read", "user")], context)

        assert granted.matched_permission.code == "territory:manage"
        assert granted.request.code == "territory:read"
        assert denied.request.code == "user:read"
        assert not denied.failed

    @pytest.mark.asyncio
    async def test_role_removal_invalidates_holders(self, role_store, settings, make_request):
        assignments = InMemoryAssignmentStore([
            RoleAssignment("u1", "org-1", "branchAdmin", ScopeBinding(branch_id="br-42")),
            RoleAssignment("u2", "org-2", "branchAdmin", ScopeBinding(branch_id="br-7")),
        ])
        service = AuthorizationService(role_store, assignments, settings=settings)
        request = make_request("update", "territory", "branch", {"targetBranchId": "br-42"})
        assert await service.is_authorized(request)

        assert role_store.remove_role("branchAdmin")
        holders = assignments.principals_with_role("branchAdmin")
        for principal_id, organization_id in holders:
            await service.invalidate(principal_id, organization_id)

        assert holders == [("u1", "org-1"), ("u2", "org-2")]
        assert not await service.is_authorized(request)
        assert not await service.has_role(Principal("u1"), "org-1", "branchAdmin")
    @pytest.mark.asyncio
    async def test_effective_permissions(self, service):
        effective = await service.effective_permissions("u1", "org-1")
        assert effective.codes() == frozenset({"territory:manage"})
        assert effective.role_ids == {"branchAdmin"}


class TestDecisionTrace:

    @pytest.mark.asyncio
    async def test_to_dict(self, service, make_request):
        decision = await service.authorize(
            make_request("update", "territory", "branch", {"targetBranchId": "br-42"})
        )
        data = decision.to_dict()
        assert data["granted"] is True
        assert data["permission"] == "territory:update"
        assert data["scope"] == "branch"
        assert data["matched_permission"]["conditions"] == {"branchId": "br-42"}
        assert str(decision).startswith("GRANTED")


class TestRoleLookup:

    @pytest.mark.asyncio
    async def test_get_role(self, service):
        role = await service.get_role("branchAdmin")
        assert role.name == "Branch Administrator"

    @pytest.mark.asyncio
    async def test_missing_role_raises(self, service):
        with pytest.raises(RoleNotFoundError) as exc_info:
            await service.get_role("ghost")
        assert exc_info.value.role_id == "ghost"
