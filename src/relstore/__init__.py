"""
relstore - content-addressable blob store on release assets.

Usage:
    >>> from relstore import upload_file, download_file
    >>>
    >>> locator = await upload_file("report.pdf", data, "owner/repo", token="ghp_xxx")
    >>> saved = locator.to_json()
    >>>
    >>> data, name = await download_file(FileLocator.from_json(saved), token="ghp_xxx")

Blocking usage:
    >>> from relstore import ReleaseStore
    >>> store = ReleaseStore()
    >>> locator = store.upload_file("report.pdf", data, "owner/repo", "ghp_xxx")
"""

from __future__ import annotations

from relstore.config import StoreSettings, configure_settings, get_settings, reset_settings
from relstore.exceptions import (
    ConcurrencyJoinError,
    DecodeError,
    InvalidRepoFormatError,
    MalformedUrlError,
    RelstoreError,
    TransportError,
)
from relstore.models import FileLocator
from relstore.store import AsyncReleaseStore, ReleaseStore, download_file, upload_file

__version__ = "0.1.0"

__all__ = [
    # Operations
    "upload_file",
    "download_file",
    "AsyncReleaseStore",
    "ReleaseStore",
    # Models
    "FileLocator",
    # Config
    "StoreSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
    # Errors
    "RelstoreError",
    "TransportError",
    "DecodeError",
    "InvalidRepoFormatError",
    "MalformedUrlError",
    "ConcurrencyJoinError",
]
