"""
URL helpers for release API responses and repository identifiers.
"""

from __future__ import annotations

import httpx

from relstore.exceptions import InvalidRepoFormatError, MalformedUrlError

# GitHub returns upload URLs as RFC 6570 templates, e.g. ".../assets{?name,label}"
_TEMPLATE_MARKER = "{"


def normalize_url(raw: str) -> str:
    """
    Canonicalize a URL taken from a release API response.

    Clears query string and fragment and strips a trailing URI-template
    marker from the path.

    Args:
        raw: URL string from a response body.

    Returns:
        Canonical absolute URL.

    Raises:
        MalformedUrlError: If raw is not an absolute http(s) URL.

    Example:
        >>> normalize_url("https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}")
        'https://uploads.github.com/repos/o/r/releases/1/assets'
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as e:
        raise MalformedUrlError(str(raw), cause=e) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise MalformedUrlError(raw)

    path = url.path
    if path.endswith(_TEMPLATE_MARKER):
        path = path[: -len(_TEMPLATE_MARKER)]

    return str(url.copy_with(path=path, query=None, fragment=None))


def parse_repository(repo: str, web_host: str = "github.com") -> str:
    """
    Validate a repository identifier and return it as 'owner/name'.

    Accepts 'owner/name' or a repository URL on web_host
    (e.g. 'https://github.com/owner/name').

    Raises:
        InvalidRepoFormatError: For anything else.
    """
    repo = repo.strip()

    if "://" in repo or repo.startswith(f"{web_host}/"):
        try:
            url = httpx.URL(repo if "://" in repo else f"https://{repo}")
        except httpx.InvalidURL as e:
            raise InvalidRepoFormatError(repo) from e
        if url.host != web_host:
            raise InvalidRepoFormatError(repo)
        segments = [s for s in url.path.split("/") if s]
        if len(segments) < 2:
            raise InvalidRepoFormatError(repo)
        owner, name = segments[0], segments[1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        if not name:
            raise InvalidRepoFormatError(repo)
        return f"{owner}/{name}"

    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepoFormatError(repo)
    return repo


__all__ = ["normalize_url", "parse_repository"]
