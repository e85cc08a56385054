"""Centralized configuration for rolegate.

Uses Pydantic BaseSettings with environment variable loading and validation.
All RG_* environment variables are validated at import time.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # Cache
    role_cache_ttl_ms: int = Field(
        default=5000, ge=0, description="How long a validated role set stays fresh (ms)"
    )

    # Identity source keys
    roles_key: str = Field(default="roles", description="Session key holding the role records")
    profile_key: str = Field(
        default="user_data", description="Session key holding the serialized user profile"
    )

    # Validation
    enforce_role_ids: bool = Field(
        default=False,
        description="Require each role id to match the catalog id for its name",
    )

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    model_config = {"env_prefix": "RG_", "case_sensitive": False, "extra": "ignore"}

    @field_validator("roles_key", "profile_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "RG_ROLES_KEY and RG_PROFILE_KEY must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"RG_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        import logging

        v = v.upper()
        if not isinstance(getattr(logging, v, None), int):
            msg = f"RG_LOG_LEVEL must be a valid Python log level, got '{v}'"
            raise ValueError(msg)
        return v


# Singleton, validated at import time.
settings = Settings()
