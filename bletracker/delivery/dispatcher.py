"""Sink dispatcher: fans canonical records out to independent remote sinks."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Sequence
from datetime import datetime

from bletracker.delivery.gate import DeliveryGate
from bletracker.delivery.sink import Sink, SinkRegistration
from bletracker.errors import DuplicateSinkError, InvalidPolicyError, TransportError
from bletracker.events import TransmitFailed, TransmitSucceeded
from bletracker.models import CanonicalRecord, DeliveryPolicy
from bletracker.utils.log_context import log_context

logger = logging.getLogger(__name__)


class SinkDispatcher:
    """Holds the ordered sink registry and starts transmissions.

    The registry is an immutable tuple replaced under a lock, so a delivery in
    progress always iterates a consistent snapshot. ``deliver`` schedules one
    task per authorized (sink, record) pair and returns without awaiting any
    of them; outcomes go to each registration's own ``results`` bus.
    """

    def __init__(
        self,
        history_max_entries: int = 10_000,
        history_retention_factor: int = 4,
        transmit_timeout: float | None = 10.0,
        release_history_on_failure: bool = False,
    ) -> None:
        self._history_max_entries = history_max_entries
        self._history_retention_factor = history_retention_factor
        self._transmit_timeout = transmit_timeout
        self._release_on_failure = release_history_on_failure
        self._registrations: tuple[SinkRegistration, ...] = ()
        self._lock = threading.Lock()
        self._detached: set[asyncio.Task] = set()

    # -- registry ------------------------------------------------------------

    def register(self, sink: Sink, policy: DeliveryPolicy) -> SinkRegistration:
        """Add *sink* governed by *policy*. Invalid configuration fails here."""
        if not isinstance(policy, DeliveryPolicy):
            raise InvalidPolicyError(f"Expected a DeliveryPolicy, got {type(policy).__name__}")
        sink_id = getattr(sink, "sink_id", None)
        if not isinstance(sink_id, str) or not sink_id:
            raise InvalidPolicyError("Sink must expose a non-empty string sink_id")
        if not callable(getattr(sink, "transmit", None)):
            raise InvalidPolicyError(f"Sink {sink_id!r} has no transmit()")

        registration = SinkRegistration(
            sink=sink,
            policy=policy,
            gate=DeliveryGate(
                policy,
                max_entries=self._history_max_entries,
                retention_factor=self._history_retention_factor,
            ),
        )
        with self._lock:
            if any(r.sink_id == sink_id for r in self._registrations):
                raise DuplicateSinkError(f"Sink {sink_id!r} is already registered")
            self._registrations = (*self._registrations, registration)
        logger.info("Registered sink %s (mode=%s)", sink_id, policy.mode.value)
        return registration

    def deregister(self, sink_id: str) -> bool:
        """Remove a sink. Its in-flight transmissions are left to finish."""
        with self._lock:
            remaining = tuple(r for r in self._registrations if r.sink_id != sink_id)
            removed = [r for r in self._registrations if r.sink_id == sink_id]
            self._registrations = remaining
        for registration in removed:
            # keep references so pending transmissions are not garbage collected
            self._detached.update(registration.inflight)
            for task in registration.inflight:
                task.add_done_callback(self._detached.discard)
        if removed:
            logger.info("Deregistered sink %s", sink_id)
        return bool(removed)

    def get(self, sink_id: str) -> SinkRegistration | None:
        for registration in self._registrations:
            if registration.sink_id == sink_id:
                return registration
        return None

    @property
    def sink_ids(self) -> list[str]:
        return [r.sink_id for r in self._registrations]

    def __len__(self) -> int:
        return len(self._registrations)

    # -- delivery ------------------------------------------------------------

    def deliver(self, records: Sequence[CanonicalRecord], now: datetime) -> int:
        """Gate every record per sink and start authorized transmissions.

        Must be called from a running event loop. Returns the number of
        transmissions started.
        """
        loop = asyncio.get_running_loop()
        started = 0
        for registration in self._registrations:
            for record in records:
                if not registration.gate.should_send(record, now):
                    continue
                task = loop.create_task(self._transmit(registration, record, now))
                registration.inflight.add(task)
                task.add_done_callback(registration.inflight.discard)
                started += 1
        return started

    async def _transmit(
        self, registration: SinkRegistration, record: CanonicalRecord, decided_at: datetime
    ) -> None:
        sink_id = registration.sink_id
        async with log_context(sink_id=sink_id, beacon=record.identity_key):
            try:
                if self._transmit_timeout is None:
                    ack = await registration.sink.transmit(record)
                else:
                    ack = await asyncio.wait_for(
                        registration.sink.transmit(record), timeout=self._transmit_timeout
                    )
            except asyncio.TimeoutError:
                error = TransportError(f"transmit timed out after {self._transmit_timeout}s")
            except TransportError as e:
                error = e
            except Exception as e:
                logger.exception("Sink %s raised an unexpected error", sink_id)
                error = TransportError(f"{type(e).__name__}: {e}")
            else:
                logger.debug("Sent %s to %s", record.identity_key, sink_id)
                await registration.results.emit(TransmitSucceeded(sink_id, record, ack))
                return

            logger.warning("Transmission of %s to %s failed: %s", record.identity_key, sink_id, error)
            if self._release_on_failure:
                registration.gate.release(record.identity_key, decided_at)
            await registration.results.emit(TransmitFailed(sink_id, record, error))

    async def drain(self) -> None:
        """Wait for every in-flight transmission, including deregistered sinks."""
        while True:
            pending = set(self._detached)
            for registration in self._registrations:
                pending.update(registration.inflight)
            pending = {t for t in pending if not t.done()}
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
