"""Tests for CyclePipeline runner and its stages."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from bletracker.pipeline.context import CycleContext
from bletracker.pipeline.stage import CyclePipeline
from bletracker.pipeline.stages.dispatch import DispatchStage
from bletracker.pipeline.stages.fanout import FanoutStage
from bletracker.pipeline.stages.parse import ParseStage
from tests.conftest import make_record, make_sighting


class _DummyStage:
    """A simple stage that appends its name to a shared list."""

    def __init__(self, stage_name: str, tracker: list, produce: bool = False):
        self._name = stage_name
        self._tracker = tracker
        self._produce = produce

    @property
    def name(self) -> str:
        return self._name

    async def process(self, ctx: CycleContext) -> CycleContext:
        self._tracker.append(self._name)
        if self._produce:
            ctx.records = [make_record()]
        return ctx


async def test_all_stages_run_when_records_survive():
    tracker = []
    pipeline = CyclePipeline([
        _DummyStage("parse", tracker, produce=True),
        _DummyStage("dispatch", tracker),
        _DummyStage("fanout", tracker),
    ])
    await pipeline.run(CycleContext(now=datetime.now(timezone.utc)))
    assert tracker == ["parse", "dispatch", "fanout"]


async def test_later_stages_skipped_without_records():
    tracker = []
    pipeline = CyclePipeline([
        _DummyStage("parse", tracker),
        _DummyStage("dispatch", tracker),
        _DummyStage("fanout", tracker),
    ])
    await pipeline.run(CycleContext(now=datetime.now(timezone.utc)))
    assert tracker == ["parse"]


def test_stage_names():
    pipeline = CyclePipeline([_DummyStage("a", []), _DummyStage("b", [])])
    assert pipeline.stage_names == ["a", "b"]


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


async def test_parse_stage_collects_records_and_errors():
    stage = ParseStage()
    ctx = CycleContext(sightings=[make_sighting(minor=1), make_sighting(rssi="bad")])
    result = await stage.process(ctx)

    assert len(result.records) == 1
    assert len(result.parse_errors) == 1


async def test_parse_stage_no_op_without_sightings():
    result = await ParseStage().process(CycleContext())
    assert result.records == []
    assert result.parse_errors == []


async def test_dispatch_stage_delegates_to_dispatcher():
    dispatcher = MagicMock()
    dispatcher.deliver.return_value = 3
    now = datetime.now(timezone.utc)
    records = [make_record()]

    result = await DispatchStage(dispatcher).process(CycleContext(now=now, records=records))

    dispatcher.deliver.assert_called_once_with(records, now)
    assert result.transmissions_started == 3


async def test_dispatch_stage_no_op_without_records():
    dispatcher = MagicMock()
    await DispatchStage(dispatcher).process(CycleContext(now=datetime.now(timezone.utc)))
    dispatcher.deliver.assert_not_called()


async def test_fanout_stage_notifies_observers():
    fanout = MagicMock()
    fanout.notify_update = AsyncMock()
    records = [make_record()]

    result = await FanoutStage(fanout).process(CycleContext(records=records))

    fanout.notify_update.assert_awaited_once_with(records)
    assert result.observers_notified is True
