"""
Release resolution.

Finds the release container for a tag, creating it when missing. Some
hosting platforms refuse to create releases in a repository with no
commits, so as a last resort the resolver commits a sentinel file and
looks the release up once more.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Awaitable
from urllib.parse import quote

from relstore.exceptions import DecodeError, MalformedUrlError, TransportError
from relstore.http import parse_json, send
from relstore.logging import get_logger
from relstore.models import ReleaseEndpoints, ReleaseResponse
from relstore.urls import normalize_url

if TYPE_CHECKING:
    import httpx

    from relstore.config import StoreSettings

logger = get_logger(__name__)

# Failures that only mean "this phase did not apply"
_SOFT_ERRORS = (TransportError, DecodeError, MalformedUrlError)


class ResolvePhase(str, Enum):
    """Phases of release resolution, attempted in order."""

    LOOKUP = "lookup"
    CREATE = "create"
    BOOTSTRAP = "bootstrap"


class ReleaseResolver:
    """
    Idempotently resolves the release container for a repository + tag.

    Example:
        >>> resolver = ReleaseResolver(client, settings)
        >>> endpoints = await resolver.resolve_or_create("owner/repo", "files")
        >>> endpoints.upload_url
        'https://uploads.github.com/repos/owner/repo/releases/1/assets'
    """

    def __init__(self, client: httpx.AsyncClient, settings: StoreSettings) -> None:
        self._client = client
        self._settings = settings

    async def resolve_or_create(self, repo: str, tag: str) -> ReleaseEndpoints:
        """
        Return the endpoints of the release tagged tag, creating it if needed.

        Args:
            repo: Repository as 'owner/name' (already validated).
            tag: Release tag name.

        Raises:
            RelstoreError: Error of the final lookup after bootstrapping.
        """
        phase = ResolvePhase.LOOKUP

        while True:
            if phase is ResolvePhase.LOOKUP:
                endpoints = await self._attempt(phase, self._lookup(repo, tag))
                if endpoints is not None:
                    return endpoints
                phase = ResolvePhase.CREATE

            elif phase is ResolvePhase.CREATE:
                endpoints = await self._attempt(phase, self._create(repo, tag))
                if endpoints is not None:
                    logger.info("release created", repo=repo, tag=tag)
                    return endpoints
                phase = ResolvePhase.BOOTSTRAP

            else:
                await self._bootstrap(repo)
                endpoints = await self._lookup(repo, tag)
                if endpoints is None:
                    raise DecodeError(
                        f"Release '{tag}' in {repo} has no upload/assets endpoints"
                    )
                return endpoints

    async def _attempt(
        self, phase: ResolvePhase, call: Awaitable[ReleaseEndpoints | None]
    ) -> ReleaseEndpoints | None:
        """Run a soft phase; its failure just moves resolution on."""
        try:
            endpoints = await call
        except _SOFT_ERRORS as e:
            logger.debug("release phase failed", phase=phase.value, error=str(e))
            return None
        if endpoints is None:
            logger.debug("release phase returned incomplete data", phase=phase.value)
        return endpoints

    async def _lookup(self, repo: str, tag: str) -> ReleaseEndpoints | None:
        # Tags may contain "/" and other reserved characters
        tag_path = quote(tag, safe="")
        response = await send(self._client, "GET", f"{_repo_path(repo)}/releases/tags/{tag_path}")
        return _endpoints(parse_json(response, ReleaseResponse))

    async def _create(self, repo: str, tag: str) -> ReleaseEndpoints | None:
        response = await send(
            self._client,
            "POST",
            f"{_repo_path(repo)}/releases",
            json={"tag_name": tag},
        )
        return _endpoints(parse_json(response, ReleaseResponse))

    async def _bootstrap(self, repo: str) -> None:
        """Commit a sentinel file so an empty repository can hold releases."""
        path = self._settings.bootstrap_path
        logger.debug("bootstrapping empty repository", repo=repo, path=path)
        try:
            await send(
                self._client,
                "PUT",
                f"{_repo_path(repo)}/contents/{quote(path)}",
                json={"message": self._settings.bootstrap_message, "content": ""},
            )
        except TransportError as e:
            if e.status_code is None:
                raise
            # The sentinel may already exist; the final lookup decides.
            logger.warning(
                "bootstrap commit rejected", repo=repo, status_code=e.status_code
            )


def _repo_path(repo: str) -> str:
    return f"/repos/{quote(repo)}"


def _endpoints(release: ReleaseResponse) -> ReleaseEndpoints | None:
    if not release.assets_url or not release.upload_url:
        return None
    return ReleaseEndpoints(
        assets_url=normalize_url(release.assets_url),
        upload_url=normalize_url(release.upload_url),
    )


__all__ = ["ReleaseResolver", "ResolvePhase"]
