"""
Release-backed blob store.

Upload an arbitrary file into a repository's release assets and fetch it
back later by its FileLocator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relstore._sync_wrapper import create_sync_service
from relstore.config import StoreSettings, get_settings
from relstore.http import build_client
from relstore.logging import get_logger
from relstore.release import ReleaseResolver
from relstore.transfer import ChunkDownloader, ChunkUploader
from relstore.urls import parse_repository

if TYPE_CHECKING:
    import httpx

    from relstore.models import FileLocator

logger = get_logger(__name__)


class AsyncReleaseStore:
    """
    Asynchronous blob store on top of release assets.

    Files are split into chunks (~100MB by default), deduplicated by
    content hash and uploaded concurrently. Every call builds its own
    HTTP client.

    Example:
        >>> store = AsyncReleaseStore()
        >>> locator = await store.upload_file(
        ...     "data.csv", Path("data.csv").read_bytes(), "owner/repo", token="ghp_xxx"
        ... )
        >>> data, name = await store.download_file(locator, token="ghp_xxx")
    """

    def __init__(
        self,
        settings: StoreSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._chunk_size = self._settings.chunk_size
        self._parallel = self._settings.max_parallel_chunks
        self._release_tag = self._settings.release_tag

    def configure(
        self,
        chunk_size: int | None = None,
        max_parallel_chunks: int | None = None,
        release_tag: str | None = None,
    ) -> None:
        """
        Configure transfer settings for this store.

        Args:
            chunk_size: Chunk size in bytes.
            max_parallel_chunks: Maximum chunk requests in flight.
            release_tag: Tag of the release holding the chunks.
        """
        if chunk_size is not None:
            if chunk_size < 1:
                raise ValueError(f"chunk_size must be positive, got {chunk_size}")
            self._chunk_size = chunk_size
        if max_parallel_chunks is not None:
            if max_parallel_chunks < 1:
                raise ValueError(
                    f"max_parallel_chunks must be positive, got {max_parallel_chunks}"
                )
            self._parallel = max_parallel_chunks
        if release_tag is not None:
            if not release_tag:
                raise ValueError("release_tag must not be empty")
            self._release_tag = release_tag

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def release_tag(self) -> str:
        return self._release_tag

    async def upload_file(
        self,
        file_name: str,
        file_data: bytes,
        repo: str,
        token: str,
    ) -> FileLocator:
        """
        Upload a file to the repository's release assets.

        Args:
            file_name: Name returned again by download_file().
            file_data: File content.
            repo: 'owner/name' or repository URL.
            token: Credential with read/write access to the repository.

        Returns:
            FileLocator to persist for download_file().

        Raises:
            InvalidRepoFormatError: If repo is malformed (before any request).
            TransportError: Network or HTTP failure.
            DecodeError: Unexpected response body.
        """
        repo = parse_repository(repo, self._settings.web_host)

        async with build_client(
            token, settings=self._settings, transport=self._transport
        ) as client:
            resolver = ReleaseResolver(client, self._settings)
            endpoints = await resolver.resolve_or_create(repo, self._release_tag)

            uploader = ChunkUploader(client, self._chunk_size, self._parallel)
            return await uploader.upload(endpoints, file_name, file_data)

    async def download_file(
        self,
        locator: FileLocator,
        token: str | None = None,
    ) -> tuple[bytes, str]:
        """
        Download a file previously stored with upload_file().

        Args:
            locator: Locator returned by upload_file().
            token: Credential with read access (None for public repositories).

        Returns:
            (file content, file name)
        """
        async with build_client(
            token, settings=self._settings, transport=self._transport
        ) as client:
            downloader = ChunkDownloader(client, self._parallel)
            return await downloader.download(locator)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} api={self._settings.api_base_url!r} "
            f"tag={self._release_tag!r} chunk_size={self._chunk_size}>"
        )


ReleaseStore = create_sync_service(AsyncReleaseStore)


async def upload_file(
    file_name: str,
    file_data: bytes,
    repo: str,
    token: str,
) -> FileLocator:
    """Upload a file with the process-wide settings. See AsyncReleaseStore.upload_file."""
    return await AsyncReleaseStore().upload_file(file_name, file_data, repo, token)


async def download_file(
    locator: FileLocator,
    token: str | None = None,
) -> tuple[bytes, str]:
    """Download a file with the process-wide settings. See AsyncReleaseStore.download_file."""
    return await AsyncReleaseStore().download_file(locator, token)


__all__ = ["AsyncReleaseStore", "ReleaseStore", "upload_file", "download_file"]
