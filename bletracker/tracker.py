"""Beacon tracker: session lifecycle and per-cycle orchestration.

The scanning collaborator drives the tracker through three entry points:
``start_session()``, ``stop_session()`` and ``on_cycle()`` (once per scan
period). Cycles are serialized by an ``asyncio.Lock``; transmissions started
by a cycle may still be in flight when the next one begins.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from bletracker.delivery.dispatcher import SinkDispatcher
from bletracker.delivery.sink import Sink, SinkRegistration
from bletracker.errors import SessionAlreadyActiveError
from bletracker.events import EventBus
from bletracker.models import (
    BoundingBox,
    CanonicalRecord,
    DeliveryPolicy,
    RawSighting,
    TrackerState,
)
from bletracker.observers import ObserverFanout
from bletracker.parser import BeaconRecordParser
from bletracker.pipeline.context import CycleContext
from bletracker.pipeline.stage import CyclePipeline
from bletracker.pipeline.stages.dispatch import DispatchStage
from bletracker.pipeline.stages.fanout import FanoutStage
from bletracker.pipeline.stages.parse import ParseStage
from bletracker.utils.log_context import log_context

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BeaconTracker:
    """Owns the parser, sink dispatcher and observer fan-out for one session."""

    def __init__(
        self,
        *,
        dispatcher: SinkDispatcher | None = None,
        fanout: ObserverFanout | None = None,
        parser: BeaconRecordParser | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._dispatcher = dispatcher or SinkDispatcher()
        self._fanout = fanout or ObserverFanout()
        self._clock = clock
        self._pipeline = CyclePipeline([
            ParseStage(parser),
            DispatchStage(self._dispatcher),
            FanoutStage(self._fanout),
        ])
        self._state = TrackerState.IDLE
        self._cycle_lock = asyncio.Lock()
        self._cycles = 0

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    def is_armed(self) -> bool:
        return self._state is TrackerState.ARMED

    @property
    def cycle_count(self) -> int:
        return self._cycles

    @property
    def dispatcher(self) -> SinkDispatcher:
        return self._dispatcher

    async def start_session(self) -> None:
        """Arm the tracker and tell observers. Fails if already armed."""
        if self._state is TrackerState.ARMED:
            raise SessionAlreadyActiveError("A scanning session is already active; stop it first")
        self._state = TrackerState.ARMED
        logger.info("Scanning session started")
        await self._fanout.notify_start()

    async def stop_session(self) -> None:
        """Disarm the tracker and tell observers. No-op when idle."""
        if self._state is TrackerState.IDLE:
            return
        self._state = TrackerState.IDLE
        logger.info("Scanning session stopped after %d cycles", self._cycles)
        await self._fanout.notify_stop()

    # -- inbound events ------------------------------------------------------

    async def on_cycle(
        self, sightings: Iterable[RawSighting], region: Any = None
    ) -> CycleContext | None:
        """Process one scan cycle. Returns None when the tracker is idle."""
        if not self.is_armed():
            logger.debug("Ignoring cycle received while idle")
            return None

        async with self._cycle_lock:
            # the session may have stopped while this cycle waited for the lock
            if not self.is_armed():
                logger.debug("Dropping cycle queued before the session stopped")
                return None
            self._cycles += 1
            ctx = CycleContext(
                cycle_id=uuid.uuid4().hex[:8],
                now=self._clock(),
                region=None if region is None else str(region),
                sightings=list(sightings),
            )
            async with log_context(cycle_id=ctx.cycle_id, region=ctx.region):
                ctx = await self._pipeline.run(ctx)
            return ctx

    async def on_region_entered(self, region: Any = None) -> None:
        """A beacon was seen in *region* for the first time."""
        if not self.is_armed():
            return
        logger.info("Beacon nearby in region %s", region)
        await self._fanout.notify_nearby()

    # -- registries ----------------------------------------------------------

    def register_sink(self, sink: Sink, policy: DeliveryPolicy) -> SinkRegistration:
        return self._dispatcher.register(sink, policy)

    def deregister_sink(self, sink_id: str) -> bool:
        return self._dispatcher.deregister(sink_id)

    def sink_results(self, sink_id: str) -> EventBus:
        """Result channel of a registered sink."""
        registration = self._dispatcher.get(sink_id)
        if registration is None:
            raise KeyError(sink_id)
        return registration.results

    async def query_region(
        self, sink_id: str, bbox: BoundingBox, receiver: Any = None
    ) -> list[CanonicalRecord]:
        """Ask a sink for beacons inside *bbox*, using its policy's confirmation threshold."""
        registration = self._dispatcher.get(sink_id)
        if registration is None:
            raise KeyError(sink_id)
        query = getattr(registration.sink, "query_beacons", None)
        if query is None:
            raise TypeError(f"Sink {sink_id!r} does not support region queries")
        return await query(
            bbox,
            min_confirmations=registration.policy.min_confirmations,
            receiver=receiver,
        )

    def register_observer(self, observer: Any) -> None:
        self._fanout.register(observer)

    def unregister_observer(self, observer: Any) -> bool:
        return self._fanout.unregister(observer)

    async def aclose(self) -> None:
        """Stop the session and wait for outstanding transmissions."""
        await self.stop_session()
        await self._dispatcher.drain()
