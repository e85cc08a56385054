"""Role hierarchy for rolegate.

Defines the fixed, totally ordered set of role names and the rank
comparisons built on it.  Permission rules in ``permissions.py`` and the
FastAPI dependencies in ``api/dependencies.py`` delegate to these
definitions.

Roles (highest → lowest privilege):
    SuperAdmin: Everything, including role management and deletes
    Administrador: Manage users and records, export reports and history
    Superior: Create records, view statistics and every record
    Elemento: Read access, own records only
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rolegate.models import Role


class RoleName(StrEnum):
    """Enumerated role names."""

    SUPERADMIN = "SuperAdmin"
    ADMINISTRADOR = "Administrador"
    SUPERIOR = "Superior"
    ELEMENTO = "Elemento"


#: Roles ordered from most to least privileged.
ROLE_HIERARCHY: list[RoleName] = [
    RoleName.SUPERADMIN,
    RoleName.ADMINISTRADOR,
    RoleName.SUPERIOR,
    RoleName.ELEMENTO,
]

#: Rank of each role; higher means more privileged.
ROLE_RANK: dict[RoleName, int] = {
    role: len(ROLE_HIERARCHY) - i for i, role in enumerate(ROLE_HIERARCHY)
}

#: Rank of a caller holding no roles at all; below every defined role.
NO_RANK = 0

#: Level reported for unknown roles or empty sets (1 is the most privileged level).
UNKNOWN_LEVEL = 999

#: Canonical catalog ids issued at login for each role.
ROLE_IDS: dict[RoleName, int] = {
    RoleName.SUPERADMIN: 1,
    RoleName.ADMINISTRADOR: 2,
    RoleName.SUPERIOR: 3,
    RoleName.ELEMENTO: 4,
}

#: Mapping from each role to the set of roles it may act as.
ROLE_INCLUDES: dict[RoleName, frozenset[RoleName]] = {
    role: frozenset(r for r in ROLE_HIERARCHY if ROLE_RANK[r] <= ROLE_RANK[role])
    for role in ROLE_HIERARCHY
}


def parse_role_name(value: object) -> RoleName | None:
    """Return the :class:`RoleName` for *value*, or ``None`` if it is not one."""
    if isinstance(value, RoleName):
        return value
    if not isinstance(value, str):
        return None
    try:
        return RoleName(value)
    except ValueError:
        return None


def rank_of(name: str) -> int:
    """Rank of a single role name; unknown names rank as :data:`NO_RANK`."""
    role = parse_role_name(name)
    return ROLE_RANK[role] if role is not None else NO_RANK


def role_level(name: str) -> int:
    """Hierarchy level of *name*: 1 for SuperAdmin down to 4, 999 if unknown."""
    role = parse_role_name(name)
    if role is None:
        return UNKNOWN_LEVEL
    return ROLE_HIERARCHY.index(role) + 1


def _names(roles: Iterable[Role | str]) -> Iterable[RoleName]:
    for r in roles:
        role = parse_role_name(r if isinstance(r, str) else getattr(r, "name", None))
        if role is not None:
            yield role


def max_rank(roles: Iterable[Role | str]) -> int:
    """Highest rank present in *roles*.

    An empty collection returns :data:`NO_RANK`, which denies every
    hierarchy check.  Unknown names are ignored.
    """
    return max((ROLE_RANK[r] for r in _names(roles)), default=NO_RANK)


def highest_role(roles: Iterable[Role | str]) -> RoleName | None:
    """The most privileged role name held, or ``None`` for an empty set."""
    rank = max_rank(roles)
    if rank == NO_RANK:
        return None
    return ROLE_HIERARCHY[len(ROLE_HIERARCHY) - rank]


def can_access(roles: Iterable[Role | str], minimum_role: str) -> bool:
    """Check whether *roles* reach at least *minimum_role* in the hierarchy.

    Always compares the maximum rank held, never the first or last role
    encountered.  An unknown *minimum_role* denies.
    """
    required = rank_of(minimum_role)
    if required == NO_RANK:
        return False
    return max_rank(roles) >= required
