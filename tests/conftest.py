"""Shared fixtures for rolegate tests."""

from __future__ import annotations

import logging

import pytest

from rolegate.cache import RoleCache
from rolegate.session import RoleSession
from rolegate.storage.identity_source import IdentitySourceAdapter

from role_helpers import CountingSource, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return CountingSource()


@pytest.fixture
def adapter(source):
    return IdentitySourceAdapter(source, roles_key="roles", profile_key="user_data")


@pytest.fixture
def cache(adapter, clock):
    return RoleCache(adapter, ttl_ms=5000, clock=clock)


@pytest.fixture
def session(source, clock):
    return RoleSession(
        source,
        ttl_ms=5000,
        clock=clock,
        session_id="s-1",
        roles_key="roles",
        profile_key="user_data",
    )


@pytest.fixture(autouse=True)
def _reset_rolegate_logger():
    """Undo any handler/level changes made by setup_logging()."""
    logger = logging.getLogger("rolegate")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
