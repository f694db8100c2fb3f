"""Mutable context object carrying intermediate state through one scan cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bletracker.errors import ParseError
from bletracker.models import CanonicalRecord, RawSighting


@dataclass
class CycleContext:
    """Mutable bag of state passed through every pipeline stage."""

    # Set by the tracker
    cycle_id: str = ""
    now: datetime | None = None
    region: str | None = None
    sightings: list[RawSighting] = field(default_factory=list)

    # Set by ParseStage
    records: list[CanonicalRecord] = field(default_factory=list)
    parse_errors: list[ParseError] = field(default_factory=list)

    # Set by DispatchStage
    transmissions_started: int = 0

    # Set by FanoutStage
    observers_notified: bool = False
