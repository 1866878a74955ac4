"""
Pytest configuration and fixtures for relstore tests.
"""

from __future__ import annotations

import json
import re
from typing import Awaitable, Callable

import httpx
import structlog
import pytest

from relstore.config import StoreSettings
from relstore.store import AsyncReleaseStore

API_HOST = "api.github.com"
UPLOADS_HOST = "uploads.github.com"
WEB_HOST = "github.com"


# ============================================================================
# Fake release API
# ============================================================================


class FakeReleaseAPI:
    """
    In-memory stand-in for the release API, served through httpx.MockTransport.

    Supports one repository with any number of tagged releases. Hooks
    allow tests to force failures or delay individual requests.
    """

    def __init__(self, repo: str = "owner/repo", has_commits: bool = True) -> None:
        self.repo = repo
        self.has_commits = has_commits
        self.releases: dict[str, int] = {}
        self.assets: dict[int, dict[str, bytes]] = {}
        self.requests: list[httpx.Request] = []
        self.uploads: list[tuple[str, bytes]] = []
        self.downloads: list[str] = []
        self.bootstrap_calls = 0
        self.lookup_calls = 0
        self.create_calls = 0

        # Failure switches
        self.fail_lookup_status: int | None = None
        self.fail_create_status: int | None = None
        self.fail_bootstrap_status: int | None = None
        self.fail_upload_names: set[str] = set()
        self.omit_upload_url = False

        # Optional per-request delay hook: called before responding
        self.before_response: Callable[[httpx.Request], Awaitable[None]] | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ------------------------------------------------------------------
    # Helpers for tests
    # ------------------------------------------------------------------

    def add_release(self, tag: str = "files") -> int:
        release_id = len(self.releases) + 1
        self.releases[tag] = release_id
        self.assets[release_id] = {}
        return release_id

    def release_json(self, tag: str) -> dict:
        release_id = self.releases[tag]
        data = {
            "id": release_id,
            "tag_name": tag,
            "assets_url": f"https://{API_HOST}/repos/{self.repo}/releases/{release_id}/assets",
            "upload_url": (
                f"https://{UPLOADS_HOST}/repos/{self.repo}/releases/{release_id}/assets"
                "{?name,label}"
            ),
        }
        if self.omit_upload_url:
            del data["upload_url"]
        return data

    def download_url(self, release_id: int, name: str) -> str:
        tag = next(t for t, i in self.releases.items() if i == release_id)
        return f"https://{WEB_HOST}/{self.repo}/releases/download/{tag}/{name}"

    # ------------------------------------------------------------------
    # Request routing
    # ------------------------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.before_response is not None:
            await self.before_response(request)

        host = request.url.host
        path = request.url.path
        repo_prefix = f"/repos/{self.repo}"

        if host == API_HOST:
            match = re.fullmatch(rf"{repo_prefix}/releases/tags/(.+)", path)
            if match and request.method == "GET":
                return self._lookup(match.group(1))

            if path == f"{repo_prefix}/releases" and request.method == "POST":
                return self._create(json.loads(request.content)["tag_name"])

            match = re.fullmatch(rf"{repo_prefix}/releases/(\d+)/assets", path)
            if match and request.method == "GET":
                return self._list_assets(int(match.group(1)))

            if path.startswith(f"{repo_prefix}/contents/") and request.method == "PUT":
                self.bootstrap_calls += 1
                if self.fail_bootstrap_status is not None:
                    return httpx.Response(self.fail_bootstrap_status, json={"message": "rejected"})
                self.has_commits = True
                return httpx.Response(201, json={"content": {"path": path}})

        if host == UPLOADS_HOST:
            match = re.fullmatch(rf"{repo_prefix}/releases/(\d+)/assets", path)
            if match and request.method == "POST":
                return self._upload(int(match.group(1)), request)

        if host == WEB_HOST and request.method == "GET":
            return self._download(request)

        return httpx.Response(404, json={"message": "Not Found"})

    def _lookup(self, tag: str) -> httpx.Response:
        self.lookup_calls += 1
        if self.fail_lookup_status is not None:
            return httpx.Response(self.fail_lookup_status, json={"message": "lookup failed"})
        if tag not in self.releases:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=self.release_json(tag))

    def _create(self, tag: str) -> httpx.Response:
        self.create_calls += 1
        if self.fail_create_status is not None:
            return httpx.Response(self.fail_create_status, json={"message": "create failed"})
        if not self.has_commits:
            return httpx.Response(422, json={"message": "Repository is empty."})
        if tag not in self.releases:
            self.add_release(tag)
        return httpx.Response(201, json=self.release_json(tag))

    def _list_assets(self, release_id: int) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"name": name, "browser_download_url": self.download_url(release_id, name)}
                for name in self.assets.get(release_id, {})
            ],
        )

    def _upload(self, release_id: int, request: httpx.Request) -> httpx.Response:
        name = request.url.params["name"]
        if name in self.fail_upload_names:
            return httpx.Response(500, json={"message": "upload failed"})
        content = request.content
        self.uploads.append((name, content))
        self.assets[release_id][name] = content
        return httpx.Response(
            201,
            json={
                "name": name,
                "size": len(content),
                "browser_download_url": self.download_url(release_id, name),
            },
        )

    def _download(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        self.downloads.append(name)
        for assets in self.assets.values():
            if name in assets:
                return httpx.Response(
                    200,
                    content=assets[name],
                    headers={"Content-Type": "application/octet-stream"},
                )
        return httpx.Response(404, text="Not Found")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_api() -> FakeReleaseAPI:
    """Fake API with an existing 'files' release."""
    api = FakeReleaseAPI()
    api.add_release("files")
    return api


@pytest.fixture
def unreleased_api() -> FakeReleaseAPI:
    """Fake API for a repository with commits but no releases."""
    return FakeReleaseAPI(has_commits=True)


@pytest.fixture
def empty_api() -> FakeReleaseAPI:
    """Fake API for a repository without releases or commits."""
    return FakeReleaseAPI(has_commits=False)


@pytest.fixture
def settings() -> StoreSettings:
    """Settings with small chunks so tests produce several chunks."""
    return StoreSettings(chunk_size=4, max_parallel_chunks=8)


@pytest.fixture
def store(settings, fake_api) -> AsyncReleaseStore:
    """Async store wired to the fake API."""
    return AsyncReleaseStore(settings=settings, transport=fake_api.transport)


@pytest.fixture
def reset_store_settings():
    """Reset process-wide settings before and after test."""
    from relstore.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def client_factory(settings):
    """Build clients bound to a given fake API."""
    from relstore.http import build_client

    def _create(api: FakeReleaseAPI, token: str | None = "test_token") -> httpx.AsyncClient:
        return build_client(token, settings=settings, transport=api.transport)

    return _create


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging configuration so no test writes to another test's stream."""
    yield
    structlog.reset_defaults()
