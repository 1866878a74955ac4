"""
relstore configuration (pydantic-settings).

All values can be overridden with RELSTORE_* environment variables:

    RELSTORE_CHUNK_SIZE=50000000
    RELSTORE_RELEASE_TAG=blobs
    RELSTORE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ~100MB per chunk. Releases accept 2GB assets but uploads that large take too long.
DEFAULT_CHUNK_SIZE = 100_000_000

DEFAULT_RELEASE_TAG = "files"

# Sentinel file committed to give an empty repository its first commit
DEFAULT_BOOTSTRAP_PATH = "__no_empty_repo__"


class StoreSettings(BaseSettings):
    """Settings for the release-backed blob store."""

    model_config = SettingsConfigDict(
        env_prefix="RELSTORE_",
        extra="ignore",
    )

    # Remote API
    api_base_url: str = "https://api.github.com"
    web_host: str = "github.com"
    user_agent: str = "relstore-python"
    release_tag: str = Field(default=DEFAULT_RELEASE_TAG, min_length=1)

    # Transfer
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    max_parallel_chunks: int = Field(default=8, ge=1, le=64)
    request_timeout: float = Field(default=30.0, ge=1.0, le=300.0)
    transfer_timeout: float = Field(default=600.0, ge=1.0, le=3600.0)

    # Empty repository bootstrap
    bootstrap_path: str = DEFAULT_BOOTSTRAP_PATH
    bootstrap_message: str = "add a commit to allow creation of a release."

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False


_settings: StoreSettings | None = None


def get_settings() -> StoreSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = StoreSettings()
    return _settings


def configure_settings(**overrides: Any) -> StoreSettings:
    """Replace the process-wide settings with explicit overrides."""
    global _settings
    _settings = StoreSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "StoreSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_RELEASE_TAG",
    "DEFAULT_BOOTSTRAP_PATH",
]
