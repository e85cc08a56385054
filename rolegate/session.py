"""Per-session entry point for calling code.

A :class:`RoleSession` owns the identity adapter and the TTL cache of one
session.  It is constructed by whatever owns the session (a UI shell, a
request context) rather than living as a module-level singleton, so two
identities can never read through the same cache.

Every method that mutates the identity source invalidates the cache
before returning.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from rolegate.cache import Clock, RoleCache, monotonic_ms
from rolegate.models import RoleSet, RoleValidationResult, UserRoleContext
from rolegate.rbac import UNKNOWN_LEVEL, can_access, highest_role, role_level
from rolegate.storage.identity_source import IdentitySource, IdentitySourceAdapter

_audit_logger = logging.getLogger("rolegate.audit")


class RoleSession:
    """Roles, profile context and cache lifecycle of one session."""

    def __init__(
        self,
        source: IdentitySource,
        *,
        ttl_ms: float | None = None,
        clock: Clock = monotonic_ms,
        session_id: str | None = None,
        roles_key: str | None = None,
        profile_key: str | None = None,
    ) -> None:
        self.session_id = session_id
        self.adapter = IdentitySourceAdapter(source, roles_key=roles_key, profile_key=profile_key)
        self.cache = RoleCache(self.adapter, ttl_ms=ttl_ms, clock=clock, session_id=session_id)

    # -- roles ---------------------------------------------------------------

    def get_user_roles(self) -> RoleSet:
        """Validated roles of this session, served from the TTL cache."""
        return self.cache.get_roles()

    get_roles = get_user_roles

    def invalidate_role_cache(self) -> None:
        self.cache.invalidate()

    def can_access(self, minimum_role: str) -> bool:
        return can_access(self.get_user_roles(), minimum_role)

    def highest_role_level(self) -> int:
        """Level of the most privileged role held; 999 without roles."""
        top = highest_role(self.get_user_roles())
        return role_level(top) if top is not None else UNKNOWN_LEVEL

    # -- lifecycle -----------------------------------------------------------

    def login(self, profile: dict[str, Any] | str, roles: list[dict[str, Any]] | str) -> None:
        """Store the records issued at login and drop any cached roles."""
        try:
            self.adapter.write_profile(profile)
            self.adapter.write_roles(roles)
        finally:
            self.cache.invalidate()
        _audit_logger.info("Session identity stored", extra={"session_id": self.session_id})

    def update_roles(self, roles: list[dict[str, Any]] | str) -> None:
        """Replace the role record after a role change."""
        try:
            self.adapter.write_roles(roles)
        finally:
            self.cache.invalidate()
        _audit_logger.info("Session roles replaced", extra={"session_id": self.session_id})

    def logout(self) -> None:
        """Clear both identity records and the cache."""
        try:
            self.adapter.clear_all()
        finally:
            self.cache.invalidate()
        _audit_logger.info("Session identity cleared", extra={"session_id": self.session_id})

    # -- context and guards --------------------------------------------------

    def get_user_role_context(self) -> UserRoleContext | None:
        """Profile id plus roles, or ``None`` without a profile or without roles."""
        roles = self.get_user_roles()
        profile = self.adapter.read_profile()
        if profile is None or not roles:
            return None
        user_id = profile.get("id")
        if isinstance(user_id, int) and not isinstance(user_id, bool):
            user_id = str(user_id)
        if not isinstance(user_id, str) or not user_id:
            user_id = None
        return UserRoleContext(user_id=user_id, roles=roles)

    def validate_roles_by_name(self, required: Iterable[str]) -> bool:
        """Route-guard check: any required name held, compared case-insensitively.

        An empty *required* list admits any caller.
        """
        required = list(required)
        if not required:
            return True
        wanted = {n.lower() for n in required if isinstance(n, str)}
        return any(r.name.value.lower() in wanted for r in self.get_user_roles())

    def validate_current_user_roles(self) -> RoleValidationResult:
        roles = self.get_user_roles()
        if not roles:
            return RoleValidationResult(
                is_valid=False, message="User has no roles assigned", user_roles=[]
            )
        names = [r.name.value for r in roles]
        return RoleValidationResult(
            is_valid=True,
            message=f"User has {len(roles)} valid role(s)",
            matched_role=highest_role(roles),
            user_roles=names,
        )
