"""
HTTP client factory and request helpers for the release API.

A fresh client is built for every top-level operation; no client is
shared across calls.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from relstore.config import StoreSettings, get_settings
from relstore.exceptions import DecodeError, TransportError

T = TypeVar("T")

OCTET_STREAM = "application/octet-stream"


def build_client(
    token: str | None = None,
    *,
    settings: StoreSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an async client for the release API.

    Args:
        token: Optional credential, sent as a bearer Authorization header.
            httpx masks this header in reprs; it is never logged.
        settings: Store settings (process-wide settings if None).
        transport: Custom transport (e.g. httpx.MockTransport in tests).

    Returns:
        Configured httpx.AsyncClient. No request is made here.
    """
    settings = settings or get_settings()

    headers = {
        "User-Agent": settings.user_agent,
        "Accept": "application/vnd.github+json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    timeout = httpx.Timeout(
        connect=settings.request_timeout,
        read=settings.transfer_timeout,
        write=settings.transfer_timeout,
        pool=settings.request_timeout,
    )

    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        headers=headers,
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
    )


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a request and fail on network errors or non-2xx statuses.

    Raises:
        TransportError: With status code and URL when available.
    """
    try:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(
            f"{method} {e.request.url} failed",
            status_code=e.response.status_code,
            url=str(e.request.url),
            cause=e,
        ) from e
    except httpx.HTTPError as e:
        raise TransportError(f"{method} {url} failed: {e}", url=url, cause=e) from e
    return response


def parse_json(response: httpx.Response, type_: type[T] | Any) -> T:
    """
    Validate a JSON response body against type_.

    Raises:
        DecodeError: If the body is not JSON or does not match type_.
    """
    try:
        return TypeAdapter(type_).validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(
            f"Unexpected response body from {response.request.url}: {e.error_count()} error(s)",
            cause=e,
        ) from e


__all__ = ["build_client", "send", "parse_json", "OCTET_STREAM"]
