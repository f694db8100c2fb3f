"""bletracker: beacon sighting normalization, dedup and fan-out."""

from bletracker.errors import (
    BleTrackerError,
    DuplicateSinkError,
    InvalidPolicyError,
    ParseError,
    SessionAlreadyActiveError,
    TransportError,
)
from bletracker.models import (
    Ack,
    BoundingBox,
    CanonicalRecord,
    DeliveryPolicy,
    Location,
    RawSighting,
    SendMode,
    TrackerState,
)
from bletracker.tracker import BeaconTracker

__all__ = [
    "Ack",
    "BeaconTracker",
    "BleTrackerError",
    "BoundingBox",
    "CanonicalRecord",
    "DeliveryPolicy",
    "DuplicateSinkError",
    "InvalidPolicyError",
    "Location",
    "ParseError",
    "RawSighting",
    "SendMode",
    "SessionAlreadyActiveError",
    "TrackerState",
    "TransportError",
]
