"""Invoke helper — call sync or async callables uniformly.

Handlers, guards and guard data initializers can be ``def`` or
``async def``. This helper keeps the sync/async check in one place.

Usage::

    from perch._internal.invoke import invoke

    result = await invoke(guard, owner, ctx, data)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
