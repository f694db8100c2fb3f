"""Pipeline stage protocol and runner."""

from __future__ import annotations

import logging
from typing import Protocol

from bletracker.pipeline.context import CycleContext

logger = logging.getLogger(__name__)


class PipelineStage(Protocol):
    """Interface for a single composable pipeline stage."""

    @property
    def name(self) -> str: ...

    async def process(self, ctx: CycleContext) -> CycleContext: ...


class CyclePipeline:
    """Runs stages in order for one scan cycle.

    Stages after the first are skipped once the cycle has no surviving
    records, so an empty cycle neither dispatches nor notifies.
    """

    def __init__(self, stages: list[PipelineStage]) -> None:
        self._stages = stages

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    async def run(self, ctx: CycleContext) -> CycleContext:
        """Execute the pipeline on *ctx* and return the (mutated) context."""
        for index, stage in enumerate(self._stages):
            if index > 0 and not ctx.records:
                logger.debug("No records survived, skipping %s", stage.name)
                continue
            ctx = await stage.process(ctx)
        return ctx
