"""Per-sink result channel: transmission outcomes as events."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from bletracker.errors import TransportError
from bletracker.models import Ack, CanonicalRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Transmission events (frozen dataclasses)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransmitSucceeded:
    """A sink acknowledged a record."""

    sink_id: str
    record: CanonicalRecord
    ack: Ack


@dataclass(frozen=True)
class TransmitFailed:
    """A sink could not deliver a record."""

    sink_id: str
    record: CanonicalRecord
    error: TransportError


# ---------------------------------------------------------------------------
# Event Bus
# ---------------------------------------------------------------------------

# Handlers may be plain callables or coroutine functions
EventHandler = Callable[..., Awaitable[None] | None]


class EventBus:
    """In-process event bus with sequential dispatch and error isolation.

    Each registered sink owns one; nothing emitted here reaches the pipeline.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """Register *handler* to be called when *event_type* is emitted."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        """Remove *handler* from *event_type* subscribers."""
        try:
            self._handlers[event_type].remove(handler)
        except ValueError:
            pass  # not subscribed

    async def emit(self, event: object) -> None:
        """Dispatch *event* to all subscribed handlers in registration order.

        If a handler raises, the error is logged and the remaining handlers
        still run.
        """
        event_type = type(event)
        for handler in list(self._handlers.get(event_type, [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Result handler %s failed for %s",
                    getattr(handler, "__name__", handler),
                    event_type.__name__,
                )

    def handler_count(self, event_type: type) -> int:
        """Return the number of handlers registered for *event_type*."""
        return len(self._handlers.get(event_type, []))
