"""Tests for the permission table and the convenience predicates."""

from __future__ import annotations

import pytest

from rolegate.exceptions import ConfigurationError, UnknownActionError, UnknownModuleError
from rolegate.models import RoleSet
from rolegate.permissions import (
    CAN_CREATE,
    PERMISSION_DESCRIPTORS,
    AnyOf,
    MinRank,
    PermissionSet,
    PermissionTable,
    can_create,
    can_delete,
    can_read,
    can_update,
    get_permissions_for,
    has_all_roles,
    has_any_role,
    is_admin,
    is_administrative,
    is_elemento,
    is_super_admin,
    is_superior,
    is_superior_or_above,
)
from rolegate.rbac import RoleName

# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class TestRules:
    def test_min_rank(self):
        rule = MinRank(RoleName.SUPERIOR)
        assert rule.allows(RoleSet.of("Administrador")) is True
        assert rule.allows(RoleSet.of("Elemento")) is False

    def test_any_of_is_exact(self):
        rule = AnyOf("Superior")
        assert rule.allows(RoleSet.of("Superior")) is True
        assert rule.allows(RoleSet.of("SuperAdmin")) is False

    def test_any_of_rejects_unknown(self):
        with pytest.raises(ConfigurationError):
            AnyOf("Root")

    def test_any_of_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            AnyOf()

    def test_table_rejects_bad_rule(self):
        with pytest.raises(ConfigurationError):
            PermissionTable({"things": {"view": "Elemento"}})


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class TestPermissionTable:
    def test_elemento_on_users(self):
        perms = get_permissions_for.users(RoleSet.of("Elemento"))
        assert perms.view is True
        assert perms.create is False
        assert perms.delete is False
        assert perms.edit is False

    def test_administrador_on_users(self):
        perms = get_permissions_for.users(RoleSet.of("Administrador"))
        assert perms.create is True
        assert perms.edit is True
        assert perms.delete is False
        assert perms.manage_roles is False

    def test_superadmin_gets_everything_but_own_records(self):
        roles = RoleSet.of("SuperAdmin")
        for module in get_permissions_for.modules:
            perms = get_permissions_for.evaluate(module, roles)
            expected = frozenset(perms) - {"view_own"}
            assert perms.allowed == expected, module
        assert get_permissions_for.records(roles).view_own is False

    def test_empty_roles_get_nothing(self):
        for module in get_permissions_for.modules:
            assert get_permissions_for.evaluate(module, RoleSet()).allowed == frozenset()

    def test_records_view_own_is_elemento_only(self):
        assert get_permissions_for.records(RoleSet.of("Elemento")).view_own is True
        assert get_permissions_for.records(RoleSet.of("Superior")).view_own is False
        assert get_permissions_for.records(RoleSet.of("Superior")).view_all is True

    def test_statistics_requires_superior(self):
        assert get_permissions_for.statistics(RoleSet.of("Elemento")).view is False
        assert get_permissions_for.statistics(RoleSet.of("Superior")).view is True
        assert get_permissions_for.statistics(RoleSet.of("Superior")).export is False

    def test_raw_records_are_validated(self):
        perms = get_permissions_for.history([{"id": 1, "name": "SuperAdmin"}])
        assert perms.delete is True
        perms = get_permissions_for.history([{"id": "x", "name": "SuperAdmin"}])
        assert perms.delete is False

    def test_permission_set_is_flat_mapping(self):
        perms = get_permissions_for.history(RoleSet.of("Administrador"))
        assert isinstance(perms, PermissionSet)
        assert dict(perms) == {"view": True, "export": True, "delete": False}
        assert perms["export"] is True
        assert set(perms) == set(PERMISSION_DESCRIPTORS["history"])

    def test_unknown_module(self):
        with pytest.raises(UnknownModuleError):
            get_permissions_for.payroll
        with pytest.raises(AttributeError):
            get_permissions_for.payroll
        with pytest.raises(UnknownModuleError):
            get_permissions_for.evaluate("payroll", RoleSet())

    def test_unknown_action(self):
        with pytest.raises(UnknownActionError):
            get_permissions_for.check("users", "fly", RoleSet.of("SuperAdmin"))
        perms = get_permissions_for.users(RoleSet.of("SuperAdmin"))
        with pytest.raises(AttributeError):
            perms.fly

    def test_create_rule_is_shared(self):
        assert PERMISSION_DESCRIPTORS["users"]["create"] is CAN_CREATE
        assert PERMISSION_DESCRIPTORS["records"]["create"] is CAN_CREATE
        superior = RoleSet.of("Superior")
        assert get_permissions_for.users(superior).create is can_create(superior) is True
        assert get_permissions_for.records(superior).create is True

    def test_check(self):
        assert get_permissions_for.check("users", "create", RoleSet.of("Administrador")) is True
        assert get_permissions_for.check("users", "create", RoleSet.of("Elemento")) is False

    def test_custom_table(self):
        table = PermissionTable({"reports": {"run": MinRank(RoleName.SUPERIOR)}})
        assert table.modules == frozenset({"reports"})
        assert table.reports(RoleSet.of("Superior")).run is True


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class TestPredicates:
    def test_is_super_admin(self):
        assert is_super_admin(RoleSet.of("SuperAdmin")) is True
        assert is_super_admin(RoleSet.of("Administrador")) is False
        assert is_super_admin(RoleSet()) is False

    def test_can_create_follows_hierarchy(self):
        assert can_create(RoleSet.of("SuperAdmin")) is True
        assert can_create(RoleSet.of("Administrador")) is True
        assert can_create(RoleSet.of("Superior")) is True
        assert can_create(RoleSet.of("Elemento")) is False

    def test_crud(self):
        elemento = RoleSet.of("Elemento")
        assert can_read(elemento) is True
        assert can_update(elemento) is False
        assert can_delete(elemento) is False
        assert can_delete(RoleSet.of("SuperAdmin")) is True
        assert can_update(RoleSet.of("Administrador")) is True

    def test_exact_role_predicates(self):
        roles = RoleSet.of("Superior", "Elemento")
        assert is_superior(roles) is True
        assert is_elemento(roles) is True
        assert is_admin(roles) is False
        assert is_administrative(roles) is False
        assert is_superior_or_above(roles) is True

    def test_has_any_and_all(self):
        roles = RoleSet.of("Administrador", "Elemento")
        assert has_any_role(["Superior", "Elemento"], roles) is True
        assert has_any_role(["Superior"], roles) is False
        assert has_all_roles(["Administrador", "Elemento"], roles) is True
        assert has_all_roles(["Administrador", "Superior"], roles) is False

    def test_predicates_fail_closed_on_garbage(self):
        assert is_super_admin("{bad json") is False
        assert can_read(None) is False
