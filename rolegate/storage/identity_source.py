"""Identity source adapter for the session-scoped key-value store.

The store itself belongs to the surrounding application.  This module
defines the contract it must satisfy (:class:`IdentitySource`), an
in-memory implementation for servers and tests, and the adapter that
maps the two logical records (profile and role list) onto store keys.

The adapter never interprets what it reads; validation lives in
``rolegate.validation``.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol, runtime_checkable

from rolegate.config import settings
from rolegate.exceptions import IdentitySourceError

logger = logging.getLogger("rolegate.storage")


@runtime_checkable
class IdentitySource(Protocol):
    """Key-value store holding one session's identity records.

    ``read`` returns ``None`` for a missing key and never raises for it.
    Backends wrap their own failures in :class:`IdentitySourceError`.
    """

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class InMemoryIdentitySource:
    """Dict-backed identity source, one instance per session."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            msg = f"Identity source values must be strings, got {type(value).__name__}"
            raise IdentitySourceError(msg)
        with self._lock:
            self._data[key] = value

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class IdentitySourceAdapter:
    """Reads and writes the profile and role-list records of one session."""

    def __init__(
        self,
        source: IdentitySource,
        *,
        roles_key: str | None = None,
        profile_key: str | None = None,
    ) -> None:
        self.source = source
        self.roles_key = roles_key or settings.roles_key
        self.profile_key = profile_key or settings.profile_key

    # -- roles ---------------------------------------------------------------

    def read_roles(self) -> str | None:
        """Raw serialized role list, or ``None`` when absent."""
        return self.source.read(self.roles_key)

    def write_roles(self, roles: list[dict[str, Any]] | str) -> None:
        value = roles if isinstance(roles, str) else json.dumps(roles)
        self.source.write(self.roles_key, value)

    def clear_roles(self) -> None:
        self.source.clear(self.roles_key)

    # -- profile -------------------------------------------------------------

    def read_profile_raw(self) -> str | None:
        return self.source.read(self.profile_key)

    def read_profile(self) -> dict[str, Any] | None:
        """Decoded profile object, or ``None`` when absent or not a JSON object.

        The profile is not schema-validated and never purged here.
        """
        raw = self.read_profile_raw()
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.debug("Profile record is not valid JSON", extra={"path": self.profile_key})
            return None
        return data if isinstance(data, dict) else None

    def write_profile(self, profile: dict[str, Any] | str) -> None:
        value = profile if isinstance(profile, str) else json.dumps(profile)
        self.source.write(self.profile_key, value)

    def clear_profile(self) -> None:
        self.source.clear(self.profile_key)

    def clear_all(self) -> None:
        """Remove both records (logout)."""
        self.clear_roles()
        self.clear_profile()
