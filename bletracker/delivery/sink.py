"""Sink capability protocol and registration record."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from bletracker.delivery.gate import DeliveryGate
from bletracker.events import EventBus
from bletracker.models import Ack, CanonicalRecord, DeliveryPolicy


@runtime_checkable
class Sink(Protocol):
    """Anything that can carry one record to a remote destination.

    ``transmit`` raises ``TransportError`` on failure.
    """

    @property
    def sink_id(self) -> str: ...

    async def transmit(self, record: CanonicalRecord) -> Ack: ...


@dataclass
class SinkRegistration:
    """A registered sink together with its gate, result channel and in-flight work."""

    sink: Sink
    policy: DeliveryPolicy
    gate: DeliveryGate
    results: EventBus = field(default_factory=EventBus)
    inflight: set[asyncio.Task] = field(default_factory=set)

    @property
    def sink_id(self) -> str:
        return self.sink.sink_id
