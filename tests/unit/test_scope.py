"""Tests for the scope ordering."""

import pytest

from neo_rbac.core.exceptions import InvalidPermissionError
from neo_rbac.domain.entities.scope import Scope, broader_or_equal


class TestScopeOrdering:
    """Scope total order, broadest first."""

    def test_declared_order_is_broadest_first(self):
        assert [scope.value for scope in Scope] == [
            "platform", "organization", "division", "branch", "territory",
        ]
        assert Scope.broadest() is Scope.PLATFORM
        assert Scope.narrowest() is Scope.TERRITORY

    def test_reflexive(self):
        for scope in Scope:
            assert broader_or_equal(scope, scope)

    def test_broader_scope_covers_narrower(self):
        assert broader_or_equal(Scope.PLATFORM, Scope.TERRITORY)
        assert broader_or_equal(Scope.DIVISION, Scope.BRANCH)
        assert not broader_or_equal(Scope.BRANCH, Scope.DIVISION)
        assert not broader_or_equal(Scope.TERRITORY, Scope.ORGANIZATION)

    def test_antisymmetric_and_total(self):
        for a in Scope:
            for b in Scope:
                assert broader_or_equal(a, b) or broader_or_equal(b, a)
                if a is not b:
                    assert broader_or_equal(a, b) != broader_or_equal(b, a)

    def test_transitive(self):
        for a in Scope:
            for b in Scope:
                for c in Scope:
                    if broader_or_equal(a, b) and broader_or_equal(b, c):
                        assert broader_or_equal(a, c)

    def test_method_form(self):
        assert Scope.ORGANIZATION.is_broader_or_equal(Scope.BRANCH)
        assert Scope.ORGANIZATION.rank == 1


class TestScopeParsing:

    def test_parse_string_case_insensitive(self):
        assert Scope.parse("Division") is Scope.DIVISION
        assert Scope.parse(Scope.BRANCH) is Scope.BRANCH

    def test_parse_unknown_scope(self):
        with pytest.raises(InvalidPermissionError) as exc_info:
            Scope.parse("region")
        assert "territory" in exc_info.value.details["valid_scopes"]
