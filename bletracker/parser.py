"""Beacon record parser: raw sightings in, canonical records out."""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from numbers import Real
from typing import Any

from bletracker.errors import ParseError
from bletracker.models import CanonicalRecord, Location, RawSighting

logger = logging.getLogger(__name__)

RSSI_MIN = -127.0
RSSI_MAX = 127.0
_KEY_LENGTH = 16


def identity_key(id1: str, id2: str, id3: str) -> str:
    """Deterministic identity of a physical beacon.

    Expects already normalized components (see ``normalize_identifiers``).
    """
    digest = hashlib.sha256("|".join((id1, id2, id3)).encode("utf-8")).hexdigest()
    return digest[:_KEY_LENGTH]


def normalize_identifiers(identifiers: Sequence[Any] | None) -> tuple[str, str, str]:
    """Validate an identifier triplet and return it stripped and lower-cased."""
    if identifiers is None:
        raise ParseError("identifier triplet is missing")
    if isinstance(identifiers, (str, bytes)) or not isinstance(identifiers, Sequence):
        raise ParseError(f"identifiers must be a sequence, got {type(identifiers).__name__}")
    if len(identifiers) != 3:
        raise ParseError(f"expected 3 identifiers, got {len(identifiers)}")

    normalized = []
    for position, component in enumerate(identifiers, start=1):
        if isinstance(component, bool):
            raise ParseError(f"id{position} must be a string or integer")
        if isinstance(component, int):
            if component < 0:
                raise ParseError(f"id{position} must not be negative")
            normalized.append(str(component))
        elif isinstance(component, str):
            text = component.strip().lower()
            if not text:
                raise ParseError(f"id{position} is empty")
            normalized.append(text)
        else:
            raise ParseError(f"id{position} must be a string or integer")
    return normalized[0], normalized[1], normalized[2]


def _finite(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ParseError(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ParseError(f"{name} is not finite: {value!r}")
    return number


def _parse_location(location: Location | None) -> Location | None:
    if location is None:
        return None
    if not isinstance(location, Location):
        raise ParseError(f"location must be a Location, got {type(location).__name__}")
    lat = _finite(location.latitude, "latitude")
    lon = _finite(location.longitude, "longitude")
    if not -90.0 <= lat <= 90.0:
        raise ParseError(f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ParseError(f"longitude out of range: {lon}")
    return Location(latitude=lat, longitude=lon)


def _parse_timestamp(captured_at: Any) -> str:
    if not isinstance(captured_at, datetime):
        raise ParseError(f"captured_at must be a datetime, got {captured_at!r}")
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=timezone.utc)
    return captured_at.isoformat()


class BeaconRecordParser:
    """Converts raw sightings into ``CanonicalRecord`` objects.

    Stateless; a single instance may be shared between trackers.
    """

    def parse(self, raw: RawSighting) -> CanonicalRecord:
        """Normalize one sighting or raise ``ParseError``."""
        if not isinstance(raw, RawSighting):
            raise ParseError(f"expected a RawSighting, got {type(raw).__name__}")
        id1, id2, id3 = normalize_identifiers(raw.identifiers)

        rssi = _finite(raw.rssi, "rssi")
        if not RSSI_MIN <= rssi <= RSSI_MAX:
            raise ParseError(f"rssi out of range: {rssi}")

        distance = _finite(raw.distance, "distance")
        if distance < 0:
            raise ParseError(f"distance must not be negative: {distance}")

        return CanonicalRecord(
            identity_key=identity_key(id1, id2, id3),
            id1=id1,
            id2=id2,
            id3=id3,
            rssi=rssi,
            distance=distance,
            timestamp=_parse_timestamp(raw.captured_at),
            location=_parse_location(raw.location),
            tx_power=raw.tx_power,
            bluetooth_address=raw.bluetooth_address,
        )

    def parse_batch(
        self, sightings: Iterable[RawSighting]
    ) -> tuple[list[CanonicalRecord], list[ParseError]]:
        """Parse every sighting; malformed ones are collected, never fatal."""
        records: list[CanonicalRecord] = []
        errors: list[ParseError] = []
        for raw in sightings:
            try:
                records.append(self.parse(raw))
            except ParseError as e:
                logger.warning("Dropping malformed sighting: %s", e)
                errors.append(e)
        return records, errors
