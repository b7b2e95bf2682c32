"""
Asyncio helpers shared by the provider-backed services.

- ``run_cancellable`` awaits a coroutine against an optional timeout and an
  optional caller-owned cancellation event.
- ``SingleFlight`` lets concurrent callers asking for the same key share one
  in-flight request, and keeps the result around for a short window.
"""

import asyncio
import copy
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from pickup_geo.core.exceptions import ProviderTimeoutError

logger = logging.getLogger(__name__)


async def run_cancellable(
    awaitable: Awaitable[Any],
    cancel_event: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
) -> Any:
    """
    Await ``awaitable`` until it finishes, times out or ``cancel_event`` is set.

    Raises:
        ProviderTimeoutError: If ``timeout`` seconds elapsed first
        asyncio.CancelledError: If ``cancel_event`` was set first
    """
    task = asyncio.ensure_future(awaitable)
    if cancel_event is not None and cancel_event.is_set():
        task.cancel()
        raise asyncio.CancelledError("cancelled by caller")

    waiters = {task}
    cancel_waiter: Optional[asyncio.Future] = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if cancel_waiter is not None and not cancel_waiter.done():
            cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    if cancel_waiter is not None and cancel_waiter in done:
        raise asyncio.CancelledError("cancelled by caller")
    raise ProviderTimeoutError(f"timed out after {timeout}s")


class SingleFlight:
    """
    In-flight request deduplication with a short-lived result cache.

    Results are deep-copied for every caller, so callers never share
    mutable state. Failed calls are not cached.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 256,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._time_func = time_func
        self._inflight: Dict[Hashable, asyncio.Future] = {}
        self._waiters: Dict[asyncio.Future, int] = {}
        self._recent: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()

    def _get_recent(self, key: Hashable) -> Tuple[bool, Any]:
        item = self._recent.get(key)
        if item is None:
            return False, None
        expires_at, value = item
        if expires_at < self._time_func():
            self._recent.pop(key, None)
            return False, None
        self._recent.move_to_end(key)
        return True, value

    def _remember(self, key: Hashable, value: Any) -> None:
        if self._ttl <= 0 or self._max_entries <= 0:
            return
        self._recent[key] = (self._time_func() + self._ttl, value)
        self._recent.move_to_end(key)
        while len(self._recent) > self._max_entries:
            self._recent.popitem(last=False)

    def _on_done(self, key: Hashable, future: asyncio.Future) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]
        if future.cancelled() or future.exception() is not None:
            return
        self._remember(key, future.result())

    async def do(
        self,
        key: Hashable,
        factory: Callable[[], Awaitable[Any]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """
        Return the result for ``key``, starting ``factory()`` only when no
        identical call is in flight or recently finished.
        """
        hit, value = self._get_recent(key)
        if hit:
            logger.debug("Reusing recent result for %s", key)
            return copy.deepcopy(value)

        future = self._inflight.get(key)
        if future is None or future.cancelled():
            future = asyncio.ensure_future(factory())
            self._inflight[key] = future
            future.add_done_callback(lambda f: self._on_done(key, f))
        else:
            logger.debug("Joining in-flight request for %s", key)

        self._waiters[future] = self._waiters.get(future, 0) + 1
        try:
            # shield: one caller giving up must not cancel the others' request
            result = await run_cancellable(asyncio.shield(future), cancel_event)
        finally:
            self._waiters[future] -= 1
            if not self._waiters[future]:
                del self._waiters[future]
                # nobody is waiting any more, stop the provider work
                if not future.done():
                    if self._inflight.get(key) is future:
                        del self._inflight[key]
                    future.cancel()
        return copy.deepcopy(result)

    def clear(self) -> None:
        self._recent.clear()
