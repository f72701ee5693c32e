"""
Async support for DDNS.

The reconciler and the zone controller are synchronous and fan out on
threads. Callers that already live inside an event loop get ``a<method>``
coroutine variants that push the blocking call onto a worker thread via
:func:`asyncio.to_thread`, so a reconciliation run never blocks the loop.

Usage::

    controller = ZoneController(reconciler)
    reports = await controller.aprocess_zones(config.zones, ipv4, ipv6)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Coroutine, TypeVar

T = TypeVar("T")


def async_wrap(
    fn: Callable[..., T],
) -> Callable[..., Coroutine[Any, Any, T]]:
    """Return an async version of *fn* that runs it in a thread.

    Args:
        fn: A synchronous callable to wrap.

    Returns:
        An async callable with the same parameters and return type.
    """

    @functools.wraps(fn)
    async def _wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(fn, *args, **kwargs)

    return _wrapper


class AsyncMixin:
    """Mixin that adds an ``a<method>`` coroutine for each public method.

    Only plain functions defined on the subclass itself are wrapped;
    properties, static helpers inherited from elsewhere and existing
    coroutines are left alone.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name, attr in list(vars(cls).items()):
            if name.startswith("_") or not inspect.isfunction(attr):
                continue
            if inspect.iscoroutinefunction(attr):
                continue
            async_name = f"a{name}"
            if not hasattr(cls, async_name):
                setattr(cls, async_name, async_wrap(attr))
