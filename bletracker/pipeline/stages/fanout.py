"""Fan-out stage: notifies local observers of the cycle's records."""

from __future__ import annotations

from bletracker.observers import ObserverFanout
from bletracker.pipeline.context import CycleContext


class FanoutStage:
    def __init__(self, fanout: ObserverFanout) -> None:
        self._fanout = fanout

    @property
    def name(self) -> str:
        return "fanout"

    async def process(self, ctx: CycleContext) -> CycleContext:
        if not ctx.records:
            return ctx
        await self._fanout.notify_update(ctx.records)
        ctx.observers_notified = True
        return ctx
