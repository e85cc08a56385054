"""Validation of role lists passed in by callers.

Same element rules as the identity path (``rolegate.validation``) but the
input is a parameter, not session state, so nothing is ever purged.

:class:`ExternalRoles` validates once and indexes the result by id and by
name, so repeated membership and hierarchy checks against a large input
cost O(1) each instead of a scan of the raw list.
"""

from __future__ import annotations

from typing import Any

from rolegate.models import Role, RoleSet
from rolegate.rbac import NO_RANK, ROLE_RANK, RoleName, max_rank, parse_role_name, rank_of
from rolegate.validation import PATH_EXTERNAL, validate_with_report


class ExternalRoles:
    """Validated, indexed view over a caller-supplied role list."""

    __slots__ = ("roles", "_by_id", "_by_name", "_rank")

    def __init__(self, raw: Any) -> None:
        if isinstance(raw, RoleSet):
            roles = raw
        else:
            roles, _ = validate_with_report(raw, path=PATH_EXTERNAL)
        self.roles: RoleSet = roles
        self._by_id: dict[int, Role] = {r.id: r for r in roles}
        self._by_name: dict[RoleName, Role] = {}
        for r in roles:
            self._by_name.setdefault(r.name, r)
        self._rank = max_rank(roles)

    def __bool__(self) -> bool:
        return bool(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def has(self, name: str) -> bool:
        role = parse_role_name(name)
        return role is not None and role in self._by_name

    def has_id(self, role_id: int) -> bool:
        if not isinstance(role_id, int) or isinstance(role_id, bool):
            return False
        return role_id in self._by_id

    def can_access(self, minimum_role: str) -> bool:
        required = rank_of(minimum_role)
        return required != NO_RANK and self._rank >= required

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def highest(self) -> RoleName | None:
        if not self._by_name:
            return None
        return max(self._by_name, key=ROLE_RANK.__getitem__)


def validate_external_roles(raw: Any) -> RoleSet:
    """Validate a caller-supplied role list. Never raises, never purges."""
    return ExternalRoles(raw).roles


def has_external_role(raw: Any, name: str) -> bool:
    """Whether the valid part of *raw* holds exactly the role *name*."""
    return ExternalRoles(raw).has(name)


def can_external_role_access(raw: Any, minimum_role: str) -> bool:
    """Whether the valid part of *raw* reaches *minimum_role* in the hierarchy."""
    return ExternalRoles(raw).can_access(minimum_role)
