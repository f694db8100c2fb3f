"""Per-sink delivery gate: resend throttling plus send-mode policy."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta

from bletracker.models import CanonicalRecord, DeliveryPolicy, SendMode

logger = logging.getLogger(__name__)


class DeliveryHistory:
    """Identity key -> last-sent time, bounded in size and age.

    Entries are kept in last-sent order, so the oldest entry is always first.
    Capacity overflow evicts the least recently sent beacon; entries older than
    ``max_age`` are swept on every write.
    """

    def __init__(self, max_entries: int = 10_000, max_age: timedelta | None = None) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._max_age = max_age
        self._entries: OrderedDict[str, datetime] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> datetime | None:
        return self._entries.get(key)

    def record(self, key: str, sent_at: datetime) -> None:
        self._entries[key] = sent_at
        self._entries.move_to_end(key)
        self._sweep(sent_at)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("History full, evicted %s", evicted)

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def _sweep(self, now: datetime) -> None:
        if not self._max_age:
            return
        cutoff = now - self._max_age
        while self._entries:
            key, sent_at = next(iter(self._entries.items()))
            if sent_at >= cutoff:
                break
            del self._entries[key]

    def items(self) -> list[tuple[str, datetime]]:
        return list(self._entries.items())


class DeliveryGate:
    """Decides whether a record may be sent to one sink right now.

    Throttling is checked before the send mode, and history is only written
    when the answer is yes, so a record rejected by policy never opens a
    throttle window. ``should_send`` is serialized by a lock because its
    read-then-write is not atomic across threads.
    """

    def __init__(
        self,
        policy: DeliveryPolicy,
        max_entries: int = 10_000,
        retention_factor: int = 4,
    ) -> None:
        self._policy = policy
        max_age = None
        if policy.min_resend_interval > timedelta(0):
            max_age = policy.min_resend_interval * retention_factor
        self._history = DeliveryHistory(max_entries=max_entries, max_age=max_age)
        self._lock = threading.Lock()

    @property
    def policy(self) -> DeliveryPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._history)

    def should_send(self, record: CanonicalRecord, now: datetime) -> bool:
        """Return True and remember *now* if *record* may be transmitted."""
        with self._lock:
            last_sent = self._history.get(record.identity_key)
            if last_sent is not None and now - last_sent < self._policy.min_resend_interval:
                return False

            if not self._allowed_by_mode(record):
                return False

            self._history.record(record.identity_key, now)
            return True

    def _allowed_by_mode(self, record: CanonicalRecord) -> bool:
        mode = self._policy.mode
        if mode is SendMode.ALWAYS:
            return True
        if mode is SendMode.LOCATION_REQUIRED:
            return record.has_location
        return False

    def release(self, identity_key: str, sent_at: datetime) -> bool:
        """Forget a send decision, unless a newer one has replaced it."""
        with self._lock:
            if self._history.get(identity_key) != sent_at:
                return False
            self._history.remove(identity_key)
            return True

    def last_sent(self, identity_key: str) -> datetime | None:
        with self._lock:
            return self._history.get(identity_key)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()

    def get_state(self) -> dict[str, str]:
        """Serialize history so a host can persist it across restarts."""
        with self._lock:
            return {key: sent_at.isoformat() for key, sent_at in self._history.items()}

    def restore_state(self, state: dict[str, str]) -> None:
        """Restore history produced by ``get_state``."""
        entries = sorted(
            ((key, datetime.fromisoformat(iso)) for key, iso in state.items()),
            key=lambda item: item[1],
        )
        with self._lock:
            self._history.clear()
            for key, sent_at in entries:
                self._history.record(key, sent_at)
