"""Core data models for bletracker.

All data models are Python dataclasses, serving as the contract between components.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from bletracker.errors import InvalidPolicyError

__all__ = [
    # Enums
    "SendMode",
    "TrackerState",
    # Sightings
    "Location",
    "RawSighting",
    "CanonicalRecord",
    # Delivery
    "DeliveryPolicy",
    "Ack",
    "BoundingBox",
]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SendMode(Enum):
    """Whether a sink receives records at all, or only located ones."""

    ALWAYS = "always"
    LOCATION_REQUIRED = "location_required"
    NEVER = "never"


class TrackerState(Enum):
    """Lifecycle state of a scanning session."""

    IDLE = "idle"
    ARMED = "armed"


# ---------------------------------------------------------------------------
# Sightings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Location:
    """Device location at capture time (WGS84 degrees)."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class RawSighting:
    """One beacon detection as handed over by the scanning subsystem.

    Nothing here is validated; the parser decides whether it is usable.
    """

    identifiers: Sequence[Any] | None   # (namespace/uuid, major/instance, minor)
    rssi: Any                           # dBm
    distance: Any                       # metres, estimated
    captured_at: Any                    # datetime expected
    location: Location | None = None
    tx_power: int | None = None
    bluetooth_address: str | None = None


@dataclass(frozen=True)
class CanonicalRecord:
    """Normalized, immutable beacon sighting."""

    identity_key: str           # hash over (id1, id2, id3) only
    id1: str
    id2: str
    id3: str
    rssi: float
    distance: float
    timestamp: str              # ISO-8601 with UTC offset
    location: Location | None = None
    tx_power: int | None = None
    bluetooth_address: str | None = None

    @property
    def has_location(self) -> bool:
        return self.location is not None

    @property
    def identifiers(self) -> tuple[str, str, str]:
        return (self.id1, self.id2, self.id3)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready representation used on the wire by HTTP sinks."""
        return {
            "hashcode": self.identity_key,
            "id1": self.id1,
            "id2": self.id2,
            "id3": self.id3,
            "rssi": self.rssi,
            "distance": self.distance,
            "latitude": self.location.latitude if self.location else None,
            "longitude": self.location.longitude if self.location else None,
            "timestamp": self.timestamp,
            "txPower": self.tx_power,
            "bluetoothAddress": self.bluetooth_address,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CanonicalRecord:
        """Build a record from a remote beacon object (inverse of to_payload)."""
        lat = payload.get("latitude")
        lon = payload.get("longitude")
        location = None
        if lat is not None and lon is not None:
            location = Location(latitude=float(lat), longitude=float(lon))
        return cls(
            identity_key=str(payload["hashcode"]),
            id1=str(payload["id1"]),
            id2=str(payload["id2"]),
            id3=str(payload["id3"]),
            rssi=float(payload["rssi"]),
            distance=float(payload["distance"]),
            timestamp=str(payload["timestamp"]),
            location=location,
            tx_power=payload.get("txPower"),
            bluetooth_address=payload.get("bluetoothAddress"),
        )


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeliveryPolicy:
    """Per-sink delivery settings, fixed at registration time.

    ``min_confirmations`` is only used by inbound region queries.
    """

    mode: SendMode = SendMode.ALWAYS
    min_resend_interval: timedelta = field(default_factory=timedelta)
    min_confirmations: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.mode, SendMode):
            try:
                object.__setattr__(self, "mode", SendMode(self.mode))
            except ValueError:
                raise InvalidPolicyError(f"Unknown send mode: {self.mode!r}") from None
        if not isinstance(self.min_resend_interval, timedelta):
            raise InvalidPolicyError(
                f"min_resend_interval must be a timedelta, got {self.min_resend_interval!r}"
            )
        if self.min_resend_interval < timedelta(0):
            raise InvalidPolicyError("min_resend_interval must not be negative")
        if isinstance(self.min_confirmations, bool) or not isinstance(self.min_confirmations, int):
            raise InvalidPolicyError("min_confirmations must be an integer")
        if self.min_confirmations < 1:
            raise InvalidPolicyError("min_confirmations must be at least 1")


@dataclass(frozen=True)
class Ack:
    """Acknowledgement returned by a sink after a successful transmit."""

    sink_id: str
    status_code: int | None = None
    received_at: datetime | None = None


@dataclass(frozen=True)
class BoundingBox:
    """Geographic query window for inbound beacon lookups."""

    lon_start: float
    lon_end: float
    lat_start: float
    lat_end: float
