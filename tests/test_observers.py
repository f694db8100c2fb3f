"""Tests for ObserverFanout."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from bletracker.observers import ObserverFanout
from tests.conftest import RecordingObserver, make_record


async def test_notify_update_reaches_all_observers_in_order() -> None:
    fanout = ObserverFanout()
    calls = []

    class Named:
        def __init__(self, name):
            self.name = name

        def on_update(self, records):
            calls.append(self.name)

        def on_start(self):
            pass

        def on_stop(self):
            pass

    for name in ("first", "second", "third"):
        fanout.register(Named(name))
    await fanout.notify_update([make_record()])

    assert calls == ["first", "second", "third"]


async def test_failing_observer_does_not_block_others() -> None:
    fanout = ObserverFanout()
    broken = MagicMock()
    broken.on_update.side_effect = RuntimeError("observer bug")
    healthy = RecordingObserver()
    fanout.register(broken)
    fanout.register(healthy)

    records = [make_record()]
    await fanout.notify_update(records)

    broken.on_update.assert_called_once()
    assert healthy.updates == [records]


async def test_async_observers_are_awaited() -> None:
    fanout = ObserverFanout()
    observer = AsyncMock()
    fanout.register(observer)

    await fanout.notify_start()
    await fanout.notify_stop()

    observer.on_start.assert_awaited_once()
    observer.on_stop.assert_awaited_once()


async def test_slow_observer_times_out_without_starving_others() -> None:
    fanout = ObserverFanout(timeout=0.01)
    healthy = RecordingObserver()

    class Stuck:
        async def on_update(self, records):
            await asyncio.Event().wait()

        def on_start(self):
            pass

        def on_stop(self):
            pass

    fanout.register(Stuck())
    fanout.register(healthy)
    await fanout.notify_update([make_record()])

    assert len(healthy.updates) == 1


async def test_observers_receive_their_own_copy_of_the_batch() -> None:
    fanout = ObserverFanout()

    class Mutating(RecordingObserver):
        def on_update(self, records):
            records.clear()

    second = RecordingObserver()
    fanout.register(Mutating())
    fanout.register(second)

    records = [make_record()]
    await fanout.notify_update(records)

    assert records == [make_record()]
    assert second.updates == [[make_record()]]


async def test_nearby_only_reaches_observers_that_support_it() -> None:
    fanout = ObserverFanout()
    supporting = RecordingObserver()

    class Minimal:
        def on_update(self, records):
            pass

        def on_start(self):
            pass

        def on_stop(self):
            pass

    fanout.register(Minimal())
    fanout.register(supporting)
    await fanout.notify_nearby()

    assert supporting.events == ["nearby"]


async def test_unregister() -> None:
    fanout = ObserverFanout()
    observer = RecordingObserver()
    fanout.register(observer)

    assert fanout.unregister(observer) is True
    assert fanout.unregister(observer) is False
    await fanout.notify_start()
    assert observer.events == []
    assert len(fanout) == 0


async def test_notify_with_no_observers_is_noop() -> None:
    await ObserverFanout().notify_update([make_record()])
