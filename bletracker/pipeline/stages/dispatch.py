"""Dispatch stage: hands surviving records to the sink dispatcher."""

from __future__ import annotations

import logging

from bletracker.delivery.dispatcher import SinkDispatcher
from bletracker.pipeline.context import CycleContext

logger = logging.getLogger(__name__)


class DispatchStage:
    """Start transmissions for every sink; never waits for them."""

    def __init__(self, dispatcher: SinkDispatcher) -> None:
        self._dispatcher = dispatcher

    @property
    def name(self) -> str:
        return "dispatch"

    async def process(self, ctx: CycleContext) -> CycleContext:
        if not ctx.records or ctx.now is None:
            return ctx
        ctx.transmissions_started = self._dispatcher.deliver(ctx.records, ctx.now)
        logger.debug(
            "Started %d transmissions for %d records",
            ctx.transmissions_started,
            len(ctx.records),
        )
        return ctx
