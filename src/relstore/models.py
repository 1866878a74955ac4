"""
Models for relstore.

FileLocator is the only value a caller needs to persist; the remaining
models describe release API response bodies.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from relstore.exceptions import DecodeError
from relstore.payload import chunk_url


class FileLocator(BaseModel):
    """
    Opaque handle to an uploaded file.

    asset_url is the common prefix of all chunk asset URLs; chunk i lives
    at f"{asset_url}-chunk{i}". Treat the pair as opaque and persist it
    via to_json()/from_json().
    """

    model_config = ConfigDict(frozen=True)

    asset_url: str
    chunks: int = Field(ge=1)

    def chunk_url(self, index: int) -> str:
        """URL of chunk asset number index."""
        return chunk_url(self.asset_url, index)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> FileLocator:
        """
        Parse a serialized locator.

        Raises:
            DecodeError: If data is not a valid locator.
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"Invalid file locator: {e.error_count()} error(s)", cause=e) from e

    def __str__(self) -> str:
        return f"{self.asset_url} ({self.chunks} chunk{'s' if self.chunks != 1 else ''})"


class ReleaseEndpoints(BaseModel):
    """Normalized endpoints of a release container. Resolved per upload, never cached."""

    model_config = ConfigDict(frozen=True)

    assets_url: str
    upload_url: str


class ReleaseResponse(BaseModel):
    """Release body returned by the lookup and create calls."""

    model_config = ConfigDict(extra="ignore")

    upload_url: str | None = None
    assets_url: str | None = None


class AssetResponse(BaseModel):
    """Asset entry from an assets listing or an upload response."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    browser_download_url: str


__all__ = [
    "FileLocator",
    "ReleaseEndpoints",
    "ReleaseResponse",
    "AssetResponse",
]
