"""
Chunked transfer engine.

Uploads and downloads run one asyncio task per chunk, bounded by a
semaphore. The first failure observed aborts the operation; sibling
tasks still in flight are abandoned rather than awaited.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from relstore.exceptions import ConcurrencyJoinError, RelstoreError
from relstore.http import OCTET_STREAM, parse_json, send
from relstore.logging import get_logger
from relstore.models import AssetResponse, FileLocator, ReleaseEndpoints
from relstore.payload import (
    chunk_asset_name,
    content_hash,
    decode_payload,
    encode_payload,
    locator_base_url,
    split_chunks,
)
from relstore.urls import normalize_url

if TYPE_CHECKING:
    import httpx

logger = get_logger(__name__)

T = TypeVar("T")


async def join_chunk_tasks(
    count: int,
    run: Callable[[int], Awaitable[T]],
    parallel: int,
) -> list[T]:
    """
    Run run(i) for every chunk index concurrently and join them.

    Results are returned in index order regardless of completion order.

    Raises:
        RelstoreError: The first failure observed among the tasks.
        ConcurrencyJoinError: A task was cancelled or died with an
            unexpected exception.
    """
    semaphore = asyncio.Semaphore(parallel)

    async def bounded(index: int) -> T:
        async with semaphore:
            return await run(index)

    tasks = [asyncio.create_task(bounded(i), name=f"chunk-{i}") for i in range(count)]
    index_of = {task: i for i, task in enumerate(tasks)}

    pending: set[asyncio.Task[T]] = set(tasks)
    while pending:
        done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            index = index_of[task]
            if task.cancelled():
                raise ConcurrencyJoinError("task was cancelled", chunk_index=index)
            error = task.exception()
            if error is None:
                continue
            if isinstance(error, RelstoreError):
                raise error
            raise ConcurrencyJoinError(
                f"task terminated abnormally: {error!r}", chunk_index=index, cause=error
            ) from error

    return [task.result() for task in tasks]


class ChunkUploader:
    """Splits a file into chunks and uploads them as release assets."""

    def __init__(self, client: httpx.AsyncClient, chunk_size: int, parallel: int) -> None:
        self._client = client
        self._chunk_size = chunk_size
        self._parallel = parallel

    async def upload(
        self,
        endpoints: ReleaseEndpoints,
        file_name: str,
        file_data: bytes,
    ) -> FileLocator:
        """
        Upload file_data under file_name into the release.

        Identical (name, content) pairs are stored once: if the first chunk
        already exists in the release, no request is made beyond the
        assets listing.

        Args:
            endpoints: Resolved release endpoints.
            file_name: Name recovered on download. Must not contain a newline.
            file_data: File content.

        Returns:
            FileLocator for the stored file.
        """
        payload = encode_payload(file_name, file_data)
        digest = content_hash(payload)
        chunks = split_chunks(payload, self._chunk_size)

        existing = await self.find_existing(endpoints.assets_url, chunk_asset_name(digest, 0))
        if existing is not None:
            logger.debug("dedup hit", hash=digest, chunks=len(chunks))
            return FileLocator(asset_url=locator_base_url(existing), chunks=len(chunks))

        logger.debug("uploading chunks", hash=digest, chunks=len(chunks), size=len(payload))

        # Filled exactly once, by chunk 0
        first_asset_url: str | None = None

        async def upload_chunk(index: int) -> None:
            nonlocal first_asset_url
            # Materialized only while its request is in flight
            chunk = bytes(chunks[index])
            response = await send(
                self._client,
                "POST",
                endpoints.upload_url,
                params={"name": chunk_asset_name(digest, index)},
                headers={
                    "Content-Type": OCTET_STREAM,
                    "Content-Length": str(len(chunk)),
                },
                content=chunk,
            )
            if index == 0:
                asset = parse_json(response, AssetResponse)
                first_asset_url = normalize_url(asset.browser_download_url)
            logger.debug("chunk uploaded", index=index, size=len(chunk))

        await join_chunk_tasks(len(chunks), upload_chunk, self._parallel)

        if first_asset_url is None:
            raise ConcurrencyJoinError("upload finished without an asset URL", chunk_index=0)

        logger.info("file uploaded", name=file_name, chunks=len(chunks), size=len(file_data))
        return FileLocator(asset_url=locator_base_url(first_asset_url), chunks=len(chunks))

    async def find_existing(self, assets_url: str, asset_name: str) -> str | None:
        """Return the normalized download URL of asset_name, if the release has it."""
        response = await send(self._client, "GET", assets_url)
        assets = parse_json(response, list[AssetResponse])
        for asset in assets:
            if asset.name == asset_name:
                return normalize_url(asset.browser_download_url)
        return None


class ChunkDownloader:
    """Fetches all chunks of a locator and reassembles the file."""

    def __init__(self, client: httpx.AsyncClient, parallel: int) -> None:
        self._client = client
        self._parallel = parallel

    async def download(self, locator: FileLocator) -> tuple[bytes, str]:
        """
        Download and reassemble a file.

        Returns:
            (file content, file name)
        """

        async def fetch_chunk(index: int) -> bytes:
            response = await send(self._client, "GET", locator.chunk_url(index))
            logger.debug("chunk downloaded", index=index, size=len(response.content))
            return response.content

        parts = await join_chunk_tasks(locator.chunks, fetch_chunk, self._parallel)
        data, file_name = decode_payload(b"".join(parts))

        logger.info("file downloaded", name=file_name, chunks=locator.chunks, size=len(data))
        return data, file_name


__all__ = ["ChunkUploader", "ChunkDownloader", "join_chunk_tasks"]
