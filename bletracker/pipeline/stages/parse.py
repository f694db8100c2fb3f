"""Parse stage: raw sightings to canonical records."""

from __future__ import annotations

import logging

from bletracker.parser import BeaconRecordParser
from bletracker.pipeline.context import CycleContext

logger = logging.getLogger(__name__)


class ParseStage:
    """Normalize the cycle's sightings, dropping malformed ones."""

    def __init__(self, parser: BeaconRecordParser | None = None) -> None:
        self._parser = parser or BeaconRecordParser()

    @property
    def name(self) -> str:
        return "parse"

    async def process(self, ctx: CycleContext) -> CycleContext:
        if not ctx.sightings:
            return ctx
        ctx.records, ctx.parse_errors = self._parser.parse_batch(ctx.sightings)
        if ctx.parse_errors:
            logger.info(
                "Parsed %d/%d sightings (%d malformed)",
                len(ctx.records),
                len(ctx.sightings),
                len(ctx.parse_errors),
            )
        return ctx
