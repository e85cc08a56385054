"""Domain models for rolegate.

- Role: one validated ``{id, name}`` record
- RoleSet: immutable, id-unique collection of roles held by one identity
- UserRoleContext: session profile id paired with its role set
- RoleValidationResult: summary of a role set for guards and diagnostics
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Set
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rolegate.rbac import ROLE_IDS, RoleName

#: Largest role id the login service ever issues.
MAX_ROLE_ID = 999


class Role(BaseModel):
    """A single validated role record."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0, le=MAX_ROLE_ID)
    name: RoleName

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name.value}


class RoleSet(Set):
    """Immutable set of :class:`Role`, unique by ``id``.

    Construction keeps the first role seen for each id.  Membership accepts
    a :class:`Role`, a role name, or a :class:`RoleName`.
    """

    __slots__ = ("_by_id", "_names")

    __hash__ = Set._hash

    def __init__(self, roles: Iterable[Role] = ()) -> None:
        by_id: dict[int, Role] = {}
        for role in roles:
            by_id.setdefault(role.id, role)
        self._by_id = by_id
        self._names = frozenset(r.name for r in by_id.values())

    def __iter__(self) -> Iterator[Role]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Role):
            return self._by_id.get(item.id) == item
        if isinstance(item, str):
            return item in self._names
        return False

    def __repr__(self) -> str:
        inner = ", ".join(f"{r.id}:{r.name.value}" for r in self)
        return f"RoleSet({{{inner}}})"

    @property
    def names(self) -> frozenset[RoleName]:
        return self._names

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._by_id)

    def get(self, role_id: int) -> Role | None:
        return self._by_id.get(role_id)

    def to_records(self) -> list[dict[str, Any]]:
        """Serialize back to the record shape stored in the session."""
        return [r.to_record() for r in self]

    @classmethod
    def of(cls, *names: str) -> RoleSet:
        """Build a set from role names using the catalog ids (tests, fixtures)."""
        return cls(Role(id=ROLE_IDS[RoleName(n)], name=RoleName(n)) for n in names)


#: The empty role set; absence of roles is always represented by this value.
EMPTY_ROLE_SET = RoleSet()


@dataclass(frozen=True)
class UserRoleContext:
    """User profile id paired with the roles held in the same session."""

    user_id: str | None
    roles: RoleSet = field(default_factory=RoleSet)


@dataclass(frozen=True)
class RoleValidationResult:
    """Outcome of checking whether a caller holds any usable role."""

    is_valid: bool
    message: str
    matched_role: RoleName | None = None
    user_roles: list[str] = field(default_factory=list)
