"""Declarative per-module permissions.

Each module maps action names to a rule:

* :class:`MinRank`: the caller's highest role must reach the given rank
  (evaluated with :func:`rolegate.rbac.can_access`);
* :class:`AnyOf`: the caller must hold one of the listed roles exactly.

Rules shared by several modules (``CAN_CREATE`` and friends) are declared
once below and referenced from each module.  Evaluation is stateless; a
role set that did not come out of the validator is validated first, so
anything malformed denies.

Usage::

    perms = get_permissions_for.users(cache.get_roles())
    if perms.create: ...
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from rolegate.exceptions import ConfigurationError, UnknownActionError, UnknownModuleError
from rolegate.external import validate_external_roles
from rolegate.models import RoleSet
from rolegate.rbac import RoleName, can_access, parse_role_name

# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MinRank:
    """Allow callers whose highest role is at least :attr:`role`."""

    role: RoleName

    def allows(self, roles: RoleSet) -> bool:
        return can_access(roles, self.role)


@dataclass(frozen=True, init=False)
class AnyOf:
    """Allow callers holding at least one of :attr:`roles` exactly."""

    roles: frozenset[RoleName]

    def __init__(self, *roles: str) -> None:
        parsed = frozenset(parse_role_name(r) for r in roles)
        if not roles or None in parsed:
            msg = f"AnyOf needs one or more known role names, got {roles!r}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "roles", parsed)

    def allows(self, roles: RoleSet) -> bool:
        return not self.roles.isdisjoint(roles.names)


Rule = MinRank | AnyOf

CAN_READ = MinRank(RoleName.ELEMENTO)
CAN_CREATE = MinRank(RoleName.SUPERIOR)
CAN_UPDATE = AnyOf(RoleName.SUPERADMIN, RoleName.ADMINISTRADOR)
CAN_DELETE = AnyOf(RoleName.SUPERADMIN)
ADMINISTRATIVE = AnyOf(RoleName.SUPERADMIN, RoleName.ADMINISTRADOR)
SUPERADMIN_ONLY = AnyOf(RoleName.SUPERADMIN)
SUPERIOR_OR_ABOVE = MinRank(RoleName.SUPERIOR)

#: Module → action → rule.
PERMISSION_DESCRIPTORS: dict[str, dict[str, Rule]] = {
    "users": {
        "view": CAN_READ,
        "create": CAN_CREATE,
        "edit": CAN_UPDATE,
        "delete": CAN_DELETE,
        "manage_roles": SUPERADMIN_ONLY,
    },
    "records": {
        "view": CAN_READ,
        "create": CAN_CREATE,
        "edit": CAN_UPDATE,
        "delete": CAN_DELETE,
        "view_all": AnyOf(RoleName.SUPERADMIN, RoleName.ADMINISTRADOR, RoleName.SUPERIOR),
        "view_own": AnyOf(RoleName.ELEMENTO),
    },
    "statistics": {
        "view": SUPERIOR_OR_ABOVE,
        "export": ADMINISTRATIVE,
        "view_detailed": ADMINISTRATIVE,
    },
    "history": {
        "view": ADMINISTRATIVE,
        "export": ADMINISTRATIVE,
        "delete": SUPERADMIN_ONLY,
    },
}


def _as_role_set(roles: Any) -> RoleSet:
    if isinstance(roles, RoleSet):
        return roles
    return validate_external_roles(roles)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class PermissionSet(Mapping[str, bool]):
    """Flat, read-only action → allowed flags for one module.

    Flags are reachable by key (``perms["create"]``) or attribute
    (``perms.create``).
    """

    __slots__ = ("module", "_flags")

    def __init__(self, module: str, flags: Mapping[str, bool]) -> None:
        self.module = module
        self._flags = dict(flags)

    def __getitem__(self, action: str) -> bool:
        return self._flags[action]

    def __iter__(self) -> Iterator[str]:
        return iter(self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def __getattr__(self, action: str) -> bool:
        if action.startswith("_"):
            raise AttributeError(action)
        try:
            return self._flags[action]
        except KeyError:
            raise AttributeError(action) from None

    def __repr__(self) -> str:
        return f"PermissionSet({self.module!r}, {self._flags!r})"

    @property
    def allowed(self) -> frozenset[str]:
        return frozenset(a for a, ok in self._flags.items() if ok)


class PermissionTable:
    """Evaluates module descriptors against a role set.

    Modules are reachable as attributes: ``table.users(roles)`` is
    ``table.evaluate("users", roles)``.
    """

    def __init__(self, descriptors: Mapping[str, Mapping[str, Rule]]) -> None:
        for module, actions in descriptors.items():
            for action, rule in actions.items():
                if not isinstance(rule, (MinRank, AnyOf)):
                    msg = f"{module}.{action}: rule must be MinRank or AnyOf, got {rule!r}"
                    raise ConfigurationError(msg)
        self._descriptors = {m: dict(a) for m, a in descriptors.items()}

    @property
    def modules(self) -> frozenset[str]:
        return frozenset(self._descriptors)

    def _actions(self, module: str) -> dict[str, Rule]:
        try:
            return self._descriptors[module]
        except KeyError:
            msg = f"Unknown permission module: {module}"
            raise UnknownModuleError(msg) from None

    def actions(self, module: str) -> frozenset[str]:
        return frozenset(self._actions(module))

    def evaluate(self, module: str, roles: Any) -> PermissionSet:
        role_set = _as_role_set(roles)
        actions = self._actions(module)
        return PermissionSet(module, {a: rule.allows(role_set) for a, rule in actions.items()})

    def check(self, module: str, action: str, roles: Any) -> bool:
        """Evaluate a single ``module.action`` rule."""
        actions = self._actions(module)
        if action not in actions:
            msg = f"Unknown action {action!r} for module {module!r}"
            raise UnknownActionError(msg)
        return actions[action].allows(_as_role_set(roles))

    def __getattr__(self, module: str) -> Callable[[Any], PermissionSet]:
        if module.startswith("_"):
            raise AttributeError(module)
        self._actions(module)
        return partial(self.evaluate, module)


get_permissions_for = PermissionTable(PERMISSION_DESCRIPTORS)


# ---------------------------------------------------------------------------
# Convenience predicates
# ---------------------------------------------------------------------------


def is_super_admin(roles: Any) -> bool:
    return SUPERADMIN_ONLY.allows(_as_role_set(roles))


def is_admin(roles: Any) -> bool:
    return RoleName.ADMINISTRADOR in _as_role_set(roles)


def is_superior(roles: Any) -> bool:
    return RoleName.SUPERIOR in _as_role_set(roles)


def is_elemento(roles: Any) -> bool:
    return RoleName.ELEMENTO in _as_role_set(roles)


def is_administrative(roles: Any) -> bool:
    return ADMINISTRATIVE.allows(_as_role_set(roles))


def is_superior_or_above(roles: Any) -> bool:
    return SUPERIOR_OR_ABOVE.allows(_as_role_set(roles))


def can_read(roles: Any) -> bool:
    return CAN_READ.allows(_as_role_set(roles))


def can_create(roles: Any) -> bool:
    return CAN_CREATE.allows(_as_role_set(roles))


def can_update(roles: Any) -> bool:
    return CAN_UPDATE.allows(_as_role_set(roles))


def can_delete(roles: Any) -> bool:
    return CAN_DELETE.allows(_as_role_set(roles))


def has_any_role(names: Iterable[str], roles: Any) -> bool:
    """True when *roles* hold at least one of *names* exactly."""
    role_set = _as_role_set(roles)
    return any(n in role_set for n in names)


def has_all_roles(names: Iterable[str], roles: Any) -> bool:
    """True when *roles* hold every one of *names*."""
    role_set = _as_role_set(roles)
    return all(n in role_set for n in names)
