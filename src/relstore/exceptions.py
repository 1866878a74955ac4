"""
Exceptions for relstore.

Every failure surfaced by upload_file/download_file is a RelstoreError.
"""

from __future__ import annotations


class RelstoreError(Exception):
    """Base error for all relstore failures."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause

    def __str__(self) -> str:
        return self.message


class TransportError(RelstoreError):
    """Network failure or non-success HTTP status from the release API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        super().__init__(message, cause=cause)


class DecodeError(RelstoreError):
    """Response body, locator or payload header did not have the expected shape."""


class InvalidRepoFormatError(RelstoreError):
    """Repository identifier is neither 'owner/name' nor a repository URL."""

    def __init__(self, repo: str) -> None:
        self.repo = repo
        super().__init__(
            f"Invalid repository format: {repo!r}. Expected 'owner/name' or a repository URL."
        )


class MalformedUrlError(RelstoreError):
    """URL returned by the release API could not be parsed."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        self.url = url
        super().__init__(f"Malformed URL: {url!r}", cause=cause)


class ConcurrencyJoinError(RelstoreError):
    """A chunk task terminated abnormally and could not be joined."""

    def __init__(
        self,
        message: str,
        chunk_index: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.chunk_index = chunk_index
        if chunk_index is not None:
            message = f"Chunk {chunk_index}: {message}"
        super().__init__(message, cause=cause)


__all__ = [
    "RelstoreError",
    "TransportError",
    "DecodeError",
    "InvalidRepoFormatError",
    "MalformedUrlError",
    "ConcurrencyJoinError",
]
