"""TTL cache for the validated role set of one session.

The cache is a passive collaborator: it cannot observe login, logout or
role changes, so the surrounding application must call
:meth:`RoleCache.invalidate` right after any of them.  Expiry is evaluated
lazily on read; there is no timer and no proactive refresh.

Thread-safety is ensured via a :class:`threading.RLock` around both the
read-or-refresh path and :meth:`RoleCache.invalidate`, so a read issued
after an invalidation always observes a fresh source read.

:class:`RoleCacheRegistry` hands out one cache per session key for servers
that serve many identities.  A cache instance is never shared between
sessions.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from rolegate.config import settings
from rolegate.exceptions import ConfigurationError
from rolegate.models import EMPTY_ROLE_SET, RoleSet
from rolegate.storage.identity_source import IdentitySource, IdentitySourceAdapter
from rolegate.validation import purge_role_record, validate

logger = logging.getLogger("rolegate.cache")

#: Millisecond clock used for TTL arithmetic.
Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class CacheStats:
    """Counters describing how a cache has been used."""

    reads: int = 0
    hits: int = 0
    refreshes: int = 0
    invalidations: int = 0


@dataclass(frozen=True)
class _CacheEntry:
    role_set: RoleSet
    fetched_at: float
    generation: int


class RoleCache:
    """Memoizes the validated role set of one identity source for ``ttl_ms``."""

    def __init__(
        self,
        adapter: IdentitySourceAdapter,
        *,
        ttl_ms: float | None = None,
        clock: Clock = monotonic_ms,
        session_id: str | None = None,
    ) -> None:
        ttl = settings.role_cache_ttl_ms if ttl_ms is None else ttl_ms
        if ttl < 0:
            msg = f"ttl_ms must be >= 0, got {ttl}"
            raise ConfigurationError(msg)
        self._adapter = adapter
        self._ttl_ms = ttl
        self._clock = clock
        self._session_id = session_id
        self._lock = threading.RLock()
        self._entry: _CacheEntry | None = None
        self._generation = 0
        self.stats = CacheStats()

    @property
    def ttl_ms(self) -> float:
        return self._ttl_ms

    @property
    def generation(self) -> int:
        """Number of invalidations so far."""
        return self._generation

    @property
    def adapter(self) -> IdentitySourceAdapter:
        return self._adapter

    def is_fresh(self) -> bool:
        """Whether the next :meth:`get_roles` would be served without a source read."""
        with self._lock:
            return self._is_fresh(self._clock())

    def _is_fresh(self, now: float) -> bool:
        entry = self._entry
        return (
            entry is not None
            and entry.generation == self._generation
            and now - entry.fetched_at < self._ttl_ms
        )

    def get_roles(self) -> RoleSet:
        """Return the cached role set, re-reading and re-validating when stale."""
        with self._lock:
            self.stats.reads += 1
            now = self._clock()
            if self._is_fresh(now):
                self.stats.hits += 1
                return self._entry.role_set
            return self._refresh(now)

    def invalidate(self) -> None:
        """Discard the current entry so the next read goes to the source."""
        with self._lock:
            self._entry = None
            self._generation += 1
            self.stats.invalidations += 1
        logger.debug(
            "Role cache invalidated",
            extra={"session_id": self._session_id, "generation": self._generation},
        )

    def _refresh(self, now: float) -> RoleSet:
        self.stats.refreshes += 1
        try:
            raw = self._adapter.read_roles()
        except Exception:
            logger.exception(
                "Identity source read failed; treating session as having no roles",
                extra={"session_id": self._session_id},
            )
            purge_role_record(self._adapter)
            role_set = EMPTY_ROLE_SET
        else:
            role_set = validate(raw, source=self._adapter)
        self._entry = _CacheEntry(role_set=role_set, fetched_at=now, generation=self._generation)
        return role_set


class RoleCacheRegistry:
    """One :class:`RoleCache` per session key.

    *source_for* maps a session id to that session's identity source.  The
    registry never lets two sessions read through the same cache.
    """

    def __init__(
        self,
        source_for: Callable[[str], IdentitySource],
        *,
        ttl_ms: float | None = None,
        clock: Clock = monotonic_ms,
        roles_key: str | None = None,
        profile_key: str | None = None,
    ) -> None:
        self._source_for = source_for
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._roles_key = roles_key
        self._profile_key = profile_key
        self._caches: dict[str, RoleCache] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> RoleCache:
        """Return the cache of *session_id*, creating it on first use."""
        with self._lock:
            cache = self._caches.get(session_id)
            if cache is None:
                adapter = IdentitySourceAdapter(
                    self._source_for(session_id),
                    roles_key=self._roles_key,
                    profile_key=self._profile_key,
                )
                cache = RoleCache(
                    adapter, ttl_ms=self._ttl_ms, clock=self._clock, session_id=session_id
                )
                self._caches[session_id] = cache
            return cache

    def get_roles(self, session_id: str) -> RoleSet:
        return self.get(session_id).get_roles()

    def invalidate(self, session_id: str) -> None:
        """Invalidate one session's cache; unknown sessions are a no-op."""
        with self._lock:
            cache = self._caches.get(session_id)
        if cache is not None:
            cache.invalidate()

    def discard(self, session_id: str) -> None:
        """Drop a session's cache entirely (session teardown)."""
        with self._lock:
            cache = self._caches.pop(session_id, None)
        if cache is not None:
            cache.invalidate()

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._caches

    def __len__(self) -> int:
        with self._lock:
            return len(self._caches)
