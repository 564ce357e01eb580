"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
List-valued sandbox fields are read as JSON, e.g.
``SANDBOX_READ_ONLY_BINDS='["/usr", "/bin"]'``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sandbox helper. Unset fields fall back to the built-in defaults in
    # cordon.sandbox.config.
    sandbox_binary: str | None = Field(
        default=None,
        description="bwrap binary path, or a bare name to search in PATH",
    )
    sandbox_base_args: list[str] | None = Field(
        default=None,
        description="Arguments passed to bwrap before any bind mount",
    )
    sandbox_read_only_binds: list[str] | None = Field(
        default=None,
        description="Host paths mounted read-only at the same location",
    )
    sandbox_write_binds: list[str] | None = Field(
        default=None,
        description="Host paths mounted writable at the same location",
    )
    sandbox_timeout_seconds: float | None = Field(
        default=60,
        ge=0,
        description="Default execution timeout; null disables it",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
