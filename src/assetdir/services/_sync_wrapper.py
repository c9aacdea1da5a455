"""
Sync wrapper generator for async classes.

Write only async code; the blocking twin is generated at class definition
time. Every coroutine method of the async class becomes a blocking method
that runs on an ``asyncio.Runner`` owned by the outermost sync object
(the client). Objects returned by those methods whose class was also
decorated are wrapped in their own twin and share the same runner, so an
upload channel keeps its in-flight request on the loop it was opened on.

Usage:
    @sync_twin
    class AsyncUploadChannel:
        async def write(self, data: bytes) -> int:
            ...

    UploadChannel = AsyncUploadChannel._sync_class

The generated class is not thread-safe and must not be used from inside a
running event loop (use the async class there).
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Iterator


def _wrap_result(result: Any, runner: asyncio.Runner) -> Any:
    """Wrap an async object in its sync twin, sharing the runner."""
    sync_class = getattr(type(result), "_sync_class", None)
    if sync_class is None:
        return result
    return sync_class._from_async(result, runner)


async def _anext(agen: Any) -> Any:
    return await agen.__anext__()


async def _aclose(agen: Any) -> None:
    await agen.aclose()


def _make_sync_method(async_method: Callable) -> Callable:
    """Convert async method to blocking method."""

    @functools.wraps(async_method)
    def sync_method(self, *args, **kwargs):
        coro = async_method(self._async_obj, *args, **kwargs)
        return _wrap_result(self._runner.run(coro), self._runner)

    return sync_method


def _make_sync_generator(async_method: Callable) -> Callable:
    """Convert async generator method to a lazy sync generator."""

    @functools.wraps(async_method)
    def sync_generator(self, *args, **kwargs) -> Iterator:
        agen = async_method(self._async_obj, *args, **kwargs)
        try:
            while True:
                try:
                    item = self._runner.run(_anext(agen))
                except StopAsyncIteration:
                    return
                yield item
        finally:
            self._runner.run(_aclose(agen))

    return sync_generator


def _make_forwarder(name: str) -> Callable:
    """Forward a plain (non-async) method."""

    def forwarder(self, *args, **kwargs):
        return getattr(self._async_obj, name)(*args, **kwargs)

    forwarder.__name__ = name
    return forwarder


def _make_property_forwarder(name: str) -> property:
    @property
    def forwarder(self):
        return getattr(self._async_obj, name)

    return forwarder


def create_sync_class(async_class: type) -> type:
    """
    Create the blocking twin of an async class.

    Args:
        async_class: Class with async methods.

    Returns:
        New class with the same public surface, blocking.

    Example:
        >>> class AsyncReader:
        ...     async def read(self, size: int = -1) -> bytes:
        ...         ...
        ...
        >>> Reader = create_sync_class(AsyncReader)
        >>> # Reader(...).read() is now blocking
    """
    sync_name = async_class.__name__
    if sync_name.startswith("Async"):
        sync_name = sync_name[5:]

    class_dict: dict[str, Any] = {
        "__doc__": async_class.__doc__,
        "__module__": async_class.__module__,
        "__async_class__": async_class,
    }

    for name in dir(async_class):
        if name.startswith("_") or name == "close":
            continue
        attr = inspect.getattr_static(async_class, name)
        if isinstance(attr, property):
            class_dict[name] = _make_property_forwarder(name)
            continue
        attr = getattr(async_class, name)
        if inspect.isasyncgenfunction(attr):
            class_dict[name] = _make_sync_generator(attr)
        elif inspect.iscoroutinefunction(attr):
            class_dict[name] = _make_sync_method(attr)
        elif callable(attr):
            class_dict[name] = _make_forwarder(name)

    if "iter_chunks" in class_dict:
        class_dict["__iter__"] = lambda self: self.iter_chunks()

    def sync_init(self, *args, **kwargs):
        self._runner = asyncio.Runner()
        self._owns_runner = True
        self._async_obj = async_class(*args, **kwargs)

    @classmethod
    def from_async(cls, async_obj, runner: asyncio.Runner):
        self = cls.__new__(cls)
        self._runner = runner
        self._owns_runner = False
        self._async_obj = async_obj
        return self

    def close(self) -> None:
        try:
            async_close = getattr(self._async_obj, "close", None)
            if async_close is not None:
                self._runner.run(async_close())
        finally:
            if self._owns_runner:
                self._runner.close()

    def _enter(self):
        return self

    def _exit(self, exc_type, exc, tb) -> None:
        if exc_type is not None and hasattr(self._async_obj, "abort"):
            # Error path: drop the in-flight request rather than finalizing it.
            self._runner.run(self._async_obj.abort())
            return
        self.close()

    def _repr(self) -> str:
        return f"<sync {self._async_obj!r}>"

    async_close = getattr(async_class, "close", None)
    if async_close is not None:
        close.__doc__ = async_close.__doc__

    class_dict.update(
        {
            "__init__": sync_init,
            "_from_async": from_async,
            "close": close,
            "__enter__": _enter,
            "__exit__": _exit,
            "__repr__": _repr,
        }
    )

    return type(sync_name, (), class_dict)


def sync_twin(async_class: type) -> type:
    """
    Decorator to auto-generate the blocking twin.

    Adds ``_sync_class`` attribute to the async class.
    """
    async_class._sync_class = create_sync_class(async_class)
    return async_class


__all__ = ["create_sync_class", "sync_twin"]
