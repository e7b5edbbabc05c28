"""
Awaitable adapter applied to factory output when ``promisify_results`` is set.

The adapter exposes the wrapped client's request methods with a uniform calling
convention: every call returns an awaitable that resolves to the method's full
return value. Coroutine methods are awaited directly; blocking methods run in a
worker thread so they do not stall the event loop.
"""

import asyncio
import functools
import inspect
from typing import Any, Callable, Iterable

DEFAULT_METHODS = (
    "request",
    "send",
    "get",
    "head",
    "options",
    "post",
    "put",
    "patch",
    "delete",
    "close",
    "aclose",
)


def _awaitable(method: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(method)
    async def _call(*args: Any, **kwargs: Any) -> Any:
        if inspect.iscoroutinefunction(method):
            return await method(*args, **kwargs)
        result = await asyncio.to_thread(method, *args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result

    return _call


class AwaitableClient:
    """Wraps a client so the methods in ``methods`` always return awaitables."""

    def __init__(self, client: Any, methods: Iterable[str] = DEFAULT_METHODS) -> None:
        self._client = client
        self._methods = frozenset(methods)

    @property
    def wrapped(self) -> Any:
        return self._client

    def __getattr__(self, name: str) -> Any:
        if name in ("_client", "_methods"):
            raise AttributeError(name)
        attr = getattr(self._client, name)
        if name in self._methods and callable(attr):
            return _awaitable(attr)
        return attr

    async def __aenter__(self) -> "AwaitableClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        close = getattr(self._client, "aclose", None) or getattr(self._client, "close", None)
        if close is not None:
            await _awaitable(close)()

    def __repr__(self) -> str:
        return f"AwaitableClient({self._client!r})"


def promisify_client(client: Any, methods: Iterable[str] = DEFAULT_METHODS) -> AwaitableClient:
    """Wrap ``client`` unless it is already wrapped."""
    if isinstance(client, AwaitableClient):
        return client
    return AwaitableClient(client, methods)
