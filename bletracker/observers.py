"""Observer fan-out: delivers parsed batches and lifecycle events locally."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from bletracker.models import CanonicalRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class BeaconObserver(Protocol):
    """Local consumer of tracker output. Methods may be sync or async.

    An observer may additionally define ``on_beacon_nearby()`` to be told when
    the scanner first sees a beacon in its region.

    Timeouts only bound async callbacks. A sync callback runs on the event
    loop and must return quickly.
    """

    def on_update(self, records: Sequence[CanonicalRecord]) -> Any: ...

    def on_start(self) -> Any: ...

    def on_stop(self) -> Any: ...


class ObserverFanout:
    """Calls every registered observer, isolating each one from the others.

    Observers are started in registration order and run concurrently, so a
    slow observer holds up nobody but itself. Exceptions and timeouts are
    logged and swallowed here.
    """

    def __init__(self, timeout: float | None = 5.0) -> None:
        self._timeout = timeout
        self._observers: tuple[Any, ...] = ()
        self._lock = threading.Lock()

    def register(self, observer: Any) -> None:
        with self._lock:
            self._observers = (*self._observers, observer)

    def unregister(self, observer: Any) -> bool:
        with self._lock:
            if observer not in self._observers:
                return False
            observers = list(self._observers)
            observers.remove(observer)
            self._observers = tuple(observers)
        return True

    def __len__(self) -> int:
        return len(self._observers)

    async def notify_update(self, records: Sequence[CanonicalRecord]) -> None:
        # each observer gets its own copy of the batch
        await self._broadcast("on_update", lambda: (list(records),))

    async def notify_start(self) -> None:
        await self._broadcast("on_start")

    async def notify_stop(self) -> None:
        await self._broadcast("on_stop")

    async def notify_nearby(self) -> None:
        await self._broadcast("on_beacon_nearby", optional=True)

    async def _broadcast(
        self, method: str, make_args: Callable[[], tuple] = tuple, optional: bool = False
    ) -> None:
        calls = []
        for observer in self._observers:
            callback = getattr(observer, method, None)
            if callback is None:
                if not optional:
                    logger.warning("Observer %r has no %s()", observer, method)
                continue
            calls.append(self._call(observer, method, callback, make_args()))
        if calls:
            await asyncio.gather(*calls)

    async def _call(
        self, observer: Any, method: str, callback: Callable[..., Any], args: tuple
    ) -> None:
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                if self._timeout is None:
                    await result
                else:
                    await asyncio.wait_for(result, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Observer %r timed out in %s()", observer, method)
        except Exception:
            logger.exception("Observer %r failed in %s()", observer, method)
