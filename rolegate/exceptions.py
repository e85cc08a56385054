"""Exception hierarchy for rolegate.

Malformed role data never raises; it degrades to an empty role set. These
types cover backend failures and programming errors only.
"""

from __future__ import annotations


class RoleGateError(Exception):
    """Base exception for all rolegate errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class IdentitySourceError(RoleGateError):
    """The session store backing an identity source failed."""

    status_code = 503
    error_type = "identity_source_error"


class UnknownModuleError(RoleGateError, AttributeError):
    """A permission lookup named a module the table does not declare."""

    status_code = 500
    error_type = "unknown_module"


class UnknownActionError(RoleGateError, KeyError):
    """A permission lookup named an action the module does not declare."""

    status_code = 500
    error_type = "unknown_action"

    def __str__(self) -> str:
        return self.message


class ConfigurationError(RoleGateError):
    """A permission descriptor or cache was configured inconsistently."""

    error_type = "configuration_error"
