"""Cycle pipeline: composable stages for one scan cycle."""

from bletracker.pipeline.context import CycleContext
from bletracker.pipeline.stage import CyclePipeline, PipelineStage

__all__ = ["CycleContext", "CyclePipeline", "PipelineStage"]
