"""
Sync wrapper generator for async services.

Write only async code; the blocking variant is generated at import time.

Usage:
    class AsyncReleaseStore:
        async def upload_file(self, ...) -> FileLocator:
            ...

    ReleaseStore = create_sync_service(AsyncReleaseStore)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable


def _run_sync(coro):
    """Run coroutine synchronously."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # Already in async context - run on a fresh loop in a worker thread
        import concurrent.futures
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    else:
        return asyncio.run(coro)


def _make_sync_method(async_method: Callable) -> Callable:
    """Convert async method to sync method."""

    @functools.wraps(async_method)
    def sync_method(self, *args, **kwargs):
        async_service = getattr(self, "_async_service", None)
        if async_service is None:
            raise RuntimeError("Sync service not properly initialized")

        return _run_sync(async_method(async_service, *args, **kwargs))

    return sync_method


def _make_forwarder(method_name: str) -> Callable:
    def forwarder(self, *args, **kwargs):
        return getattr(self._async_service, method_name)(*args, **kwargs)

    forwarder.__name__ = method_name
    return forwarder


def _make_property_forwarder(prop_name: str) -> property:
    @property
    def forwarder(self):
        return getattr(self._async_service, prop_name)

    return forwarder


def create_sync_service(async_class: type) -> type:
    """
    Create sync service class from async service class.

    Coroutine methods become blocking methods, plain public methods and
    properties are forwarded to the wrapped async instance.

    Args:
        async_class: Class with async methods. Its name should start with "Async".

    Returns:
        New sync class taking the same constructor arguments.

    Example:
        >>> ReleaseStore = create_sync_service(AsyncReleaseStore)
        >>> locator = ReleaseStore().upload_file("a.txt", b"data", "owner/repo", "ghp_xxx")
    """
    sync_name = async_class.__name__
    if sync_name.startswith("Async"):
        sync_name = sync_name[5:]

    class_dict: dict[str, Any] = {
        "__doc__": async_class.__doc__,
        "__module__": async_class.__module__,
    }

    for name in dir(async_class):
        if name.startswith("_"):
            continue

        attr = getattr(async_class, name)

        if isinstance(attr, property):
            class_dict[name] = _make_property_forwarder(name)
        elif inspect.iscoroutinefunction(attr):
            class_dict[name] = _make_sync_method(attr)
        elif inspect.isfunction(attr):
            class_dict[name] = _make_forwarder(name)

    def sync_init(self, *args: Any, **kwargs: Any) -> None:
        self._async_service = async_class(*args, **kwargs)

    def sync_repr(self) -> str:
        return repr(self._async_service).replace(async_class.__name__, sync_name, 1)

    class_dict["__init__"] = sync_init
    class_dict["__repr__"] = sync_repr

    return type(sync_name, (), class_dict)


__all__ = ["create_sync_service"]
