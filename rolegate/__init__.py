"""rolegate: role validation, TTL caching and permission resolution for dashboard sessions."""

from rolegate.cache import RoleCache, RoleCacheRegistry
from rolegate.external import (
    ExternalRoles,
    can_external_role_access,
    has_external_role,
    validate_external_roles,
)
from rolegate.models import EMPTY_ROLE_SET, Role, RoleSet, RoleValidationResult, UserRoleContext
from rolegate.permissions import (
    AnyOf,
    MinRank,
    PermissionSet,
    PermissionTable,
    can_create,
    can_delete,
    can_read,
    can_update,
    get_permissions_for,
    is_super_admin,
)
from rolegate.rbac import ROLE_HIERARCHY, RoleName, can_access, max_rank
from rolegate.session import RoleSession
from rolegate.storage import IdentitySource, IdentitySourceAdapter, InMemoryIdentitySource
from rolegate.validation import ValidationReport, validate

__version__ = "0.3.0"

__all__ = [
    "EMPTY_ROLE_SET",
    "ROLE_HIERARCHY",
    "AnyOf",
    "ExternalRoles",
    "IdentitySource",
    "IdentitySourceAdapter",
    "InMemoryIdentitySource",
    "MinRank",
    "PermissionSet",
    "PermissionTable",
    "Role",
    "RoleCache",
    "RoleCacheRegistry",
    "RoleName",
    "RoleSession",
    "RoleSet",
    "RoleValidationResult",
    "UserRoleContext",
    "ValidationReport",
    "__version__",
    "can_access",
    "can_create",
    "can_delete",
    "can_external_role_access",
    "can_read",
    "can_update",
    "get_permissions_for",
    "has_external_role",
    "is_super_admin",
    "max_rank",
    "validate",
    "validate_external_roles",
]
