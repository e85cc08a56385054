"""Tests for caller-supplied role lists."""

from __future__ import annotations

import json

import pytest

from rolegate.external import (
    ExternalRoles,
    can_external_role_access,
    has_external_role,
    validate_external_roles,
)
from rolegate.models import RoleSet
from rolegate.rbac import NO_RANK, ROLE_RANK, RoleName


class TestValidateExternalRoles:
    def test_valid_list(self):
        raw = [{"id": 1, "name": "SuperAdmin"}, {"id": 3, "nombre": "Superior"}]
        assert validate_external_roles(raw) == RoleSet.of("SuperAdmin", "Superior")

    def test_serialized_list(self):
        raw = json.dumps([{"id": 4, "name": "Elemento"}])
        assert validate_external_roles(raw) == RoleSet.of("Elemento")

    @pytest.mark.parametrize("raw", [None, "nope", {"id": 1, "name": "SuperAdmin"}, 7, "[1,"])
    def test_malformed_is_empty(self, raw):
        assert validate_external_roles(raw) == RoleSet()

    def test_role_set_passes_through(self):
        rs = RoleSet.of("Superior")
        assert ExternalRoles(rs).roles is rs

    def test_never_touches_identity_source(self, source):
        source.write("roles", json.dumps([{"id": 1, "name": "SuperAdmin"}]))
        validate_external_roles("{corrupt")
        assert source.clears == []
        assert source.read("roles") is not None


class TestHasExternalRole:
    def test_exact_name(self):
        raw = [{"id": 2, "name": "Administrador"}]
        assert has_external_role(raw, "Administrador") is True
        assert has_external_role(raw, "Superior") is False

    def test_no_hierarchy(self):
        assert has_external_role([{"id": 1, "name": "SuperAdmin"}], "Elemento") is False

    def test_unknown_name(self):
        assert has_external_role([{"id": 1, "name": "SuperAdmin"}], "Root") is False

    def test_malformed_entries_do_not_count(self):
        raw = [{"id": "x", "name": "SuperAdmin"}, {"id": 4, "name": "Elemento"}]
        assert has_external_role(raw, "SuperAdmin") is False
        assert has_external_role(raw, "Elemento") is True


class TestCanExternalRoleAccess:
    @pytest.mark.parametrize(
        "names,minimum,expected",
        [
            (["Elemento"], "Superior", False),
            (["Administrador"], "Superior", True),
            (["SuperAdmin"], "SuperAdmin", True),
            ([], "Elemento", False),
        ],
    )
    def test_hierarchy(self, names, minimum, expected):
        raw = [{"id": i, "name": n} for i, n in enumerate(names, 1)]
        assert can_external_role_access(raw, minimum) is expected

    def test_unknown_minimum_denies(self):
        assert can_external_role_access([{"id": 1, "name": "SuperAdmin"}], "Root") is False

    def test_garbage_denies(self):
        assert can_external_role_access("not even json", "Elemento") is False


class TestExternalRolesIndex:
    @pytest.mark.parametrize("role_id", [[2], {"id": 2}, "2", None, True])
    def test_has_id_rejects_non_integers(self, role_id):
        ext = ExternalRoles([{"id": 2, "name": "Administrador"}, {"id": 1, "name": "SuperAdmin"}])
        assert ext.has_id(role_id) is False

    def test_large_input(self):
        raw = [{"id": (i % 999) + 1, "name": "Elemento"} for i in range(10_000)]
        raw.append({"id": 2, "name": "Administrador"})
        ext = ExternalRoles(raw)
        assert len(ext) == 999
        # id 2 was first seen as Elemento, so the later Administrador is a duplicate.
        assert ext.highest is RoleName.ELEMENTO
        assert ext.has_id(999)

    def test_rank_and_highest(self):
        ext = ExternalRoles([{"id": 3, "name": "Superior"}, {"id": 4, "name": "Elemento"}])
        assert ext.rank == ROLE_RANK[RoleName.SUPERIOR]
        assert ext.highest is RoleName.SUPERIOR
        assert ext

    def test_empty(self):
        ext = ExternalRoles([])
        assert not ext
        assert ext.rank == NO_RANK
        assert ext.highest is None
