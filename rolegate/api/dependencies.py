"""FastAPI dependencies that gate endpoints on session roles.

The surrounding application authenticates the request and sets
``request.state.session_id``; it also stores a
:class:`~rolegate.cache.RoleCacheRegistry` on ``app.state.role_caches``
(see :func:`install_role_caches`).  These dependencies only read roles
through that session's cache and turn a deny into an HTTP error.

Usage::

    @app.get("/statistics", dependencies=[Depends(require_access("Superior"))])
    async def statistics(): ...

    @app.delete("/history/{id}", dependencies=[Depends(require_permission("history", "delete"))])
    async def delete_history(id: int): ...
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status

from rolegate.cache import RoleCache, RoleCacheRegistry
from rolegate.exceptions import ConfigurationError, UnknownActionError
from rolegate.models import RoleSet
from rolegate.permissions import PermissionTable, get_permissions_for
from rolegate.rbac import NO_RANK, can_access, rank_of

_audit_logger = logging.getLogger("rolegate.audit")


def install_role_caches(app: FastAPI, registry: RoleCacheRegistry) -> None:
    """Attach *registry* so the dependencies below can find session caches."""
    app.state.role_caches = registry


def _session_cache(request: Request) -> RoleCache:
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No active session.")
    registry: RoleCacheRegistry | None = getattr(request.app.state, "role_caches", None)
    if registry is None:
        msg = "app.state.role_caches is not set; call install_role_caches() at startup"
        raise ConfigurationError(msg)
    return registry.get(session_id)


def _deny(request: Request, reason: str, detail: str) -> HTTPException:
    _audit_logger.warning(
        "Access denied (%s): %s %s",
        reason,
        request.method,
        request.url.path,
        extra={
            "event_category": "audit",
            "action": "access_denied",
            "reason": reason,
            "session_id": getattr(request.state, "session_id", None),
        },
    )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def session_roles(request: Request) -> RoleSet:
    """Dependency returning the caller's validated roles without checking them."""
    return _session_cache(request).get_roles()


def require_access(min_role: str):
    """Dependency factory: require the session's highest role to reach *min_role*."""
    if rank_of(min_role) == NO_RANK:
        msg = f"Unknown role name: {min_role!r}"
        raise ConfigurationError(msg)

    async def _check(request: Request) -> RoleSet:
        roles = _session_cache(request).get_roles()
        if not can_access(roles, min_role):
            raise _deny(request, "insufficient_rank", f"Requires role {min_role} or higher.")
        return roles

    return _check


def require_permission(module: str, action: str, *, table: PermissionTable = get_permissions_for):
    """Dependency factory: require ``module.action`` to be allowed for the session."""
    if action not in table.actions(module):
        msg = f"Unknown action {action!r} for module {module!r}"
        raise UnknownActionError(msg)

    async def _check(request: Request) -> RoleSet:
        roles = _session_cache(request).get_roles()
        if not table.check(module, action, roles):
            raise _deny(request, "permission_denied", f"Not allowed: {module}.{action}.")
        return roles

    return _check
