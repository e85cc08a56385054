"""Session-scoped identity storage."""

from rolegate.storage.identity_source import (
    IdentitySource,
    IdentitySourceAdapter,
    InMemoryIdentitySource,
)

__all__ = ["IdentitySource", "IdentitySourceAdapter", "InMemoryIdentitySource"]
