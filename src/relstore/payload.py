"""
Payload wire format and chunk addressing.

An uploaded payload is the UTF-8 file name, a single newline, then the
file bytes. The payload is hashed and cut into fixed-size chunks stored
as assets named "{hash}-chunk{i}".
"""

from __future__ import annotations

import hashlib

from relstore.exceptions import DecodeError
from relstore.logging import get_logger

logger = get_logger(__name__)

NAME_TERMINATOR = b"\n"
CHUNK_SUFFIX = "-chunk"


def encode_payload(file_name: str, data: bytes) -> bytes:
    """Prefix data with the newline-terminated file name."""
    if "\n" in file_name:
        raise ValueError("File name must not contain a newline")
    return b"".join((file_name.encode("utf-8"), NAME_TERMINATOR, data))


def decode_payload(payload: bytes) -> tuple[bytes, str]:
    """
    Split a reassembled payload into (data, file_name).

    A payload without a name header is returned whole with an empty name.
    """
    header, sep, data = payload.partition(NAME_TERMINATOR)
    if not sep:
        logger.warning("payload has no file name header", size=len(payload))
        return payload, ""

    try:
        file_name = header.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("File name header is not valid UTF-8", cause=e) from e
    return data, file_name


def content_hash(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def chunk_count(length: int, chunk_size: int) -> int:
    """Number of chunks for a payload of length bytes (at least 1)."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return max(1, -(-length // chunk_size))


def split_chunks(payload: bytes, chunk_size: int) -> list[memoryview]:
    """Slice payload into chunk_size views without copying it."""
    count = chunk_count(len(payload), chunk_size)
    view = memoryview(payload)
    return [view[i * chunk_size : (i + 1) * chunk_size] for i in range(count)]


def chunk_asset_name(digest: str, index: int) -> str:
    return f"{digest}{CHUNK_SUFFIX}{index}"


def chunk_url(base_url: str, index: int) -> str:
    return f"{base_url}{CHUNK_SUFFIX}{index}"


def locator_base_url(chunk0_url: str) -> str:
    """
    Derive the locator base URL from chunk 0's download URL.

    The release API names the first asset "{hash}-chunk0"; dropping that
    suffix leaves a prefix that chunk_url() extends to every chunk.
    """
    suffix = f"{CHUNK_SUFFIX}0"
    if chunk0_url.endswith(suffix):
        return chunk0_url[: -len(suffix)]
    return chunk0_url


__all__ = [
    "encode_payload",
    "decode_payload",
    "content_hash",
    "chunk_count",
    "split_chunks",
    "chunk_asset_name",
    "chunk_url",
    "locator_base_url",
]
