"""Shared test fixtures for bletracker.

Provides sighting factories, fake sinks and observers, and a controllable clock.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from bletracker.errors import TransportError
from bletracker.models import Ack, CanonicalRecord, Location, RawSighting
from bletracker.parser import BeaconRecordParser

T0 = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)
UUID = "E2C56DB5-DFFB-48D2-B060-D0F5A71096E0"
_DEFAULT = object()


# ---------------------------------------------------------------------------
# Sightings & records
# ---------------------------------------------------------------------------


def make_sighting(
    minor=1,
    major=100,
    uuid=UUID,
    rssi=-60,
    distance=1.5,
    location=Location(latitude=49.2564, longitude=7.0413),
    captured_at=T0,
    identifiers=_DEFAULT,
) -> RawSighting:
    return RawSighting(
        identifiers=(uuid, major, minor) if identifiers is _DEFAULT else identifiers,
        rssi=rssi,
        distance=distance,
        location=location,
        captured_at=captured_at,
    )


def make_record(minor=1, location=Location(latitude=49.2564, longitude=7.0413)) -> CanonicalRecord:
    return BeaconRecordParser().parse(make_sighting(minor=minor, location=location))


@pytest.fixture
def parser() -> BeaconRecordParser:
    return BeaconRecordParser()


@pytest.fixture
def located_record() -> CanonicalRecord:
    return make_record(minor=1)


@pytest.fixture
def unlocated_record() -> CanonicalRecord:
    return make_record(minor=2, location=None)


# ---------------------------------------------------------------------------
# Doubles
# ---------------------------------------------------------------------------


class FakeSink:
    """Sink that records every transmitted record.

    ``fail`` makes transmit raise TransportError; ``gate`` (an asyncio.Event)
    holds transmissions until it is set.
    """

    def __init__(self, sink_id: str = "sink-a", fail: bool = False, gate=None) -> None:
        self._sink_id = sink_id
        self.fail = fail
        self.gate = gate
        self.sent: list[CanonicalRecord] = []

    @property
    def sink_id(self) -> str:
        return self._sink_id

    async def transmit(self, record: CanonicalRecord) -> Ack:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise TransportError("connection refused")
        self.sent.append(record)
        return Ack(sink_id=self._sink_id, status_code=201)


class RecordingObserver:
    def __init__(self) -> None:
        self.updates: list[list[CanonicalRecord]] = []
        self.events: list[str] = []

    def on_update(self, records):
        self.updates.append(list(records))
        self.events.append("update")

    def on_start(self):
        self.events.append("start")

    def on_stop(self):
        self.events.append("stop")

    def on_beacon_nearby(self):
        self.events.append("nearby")


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


async def settle() -> None:
    """Let scheduled transmission tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)
