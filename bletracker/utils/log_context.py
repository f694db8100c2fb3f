"""Async-aware logging context using contextvars.

Provides ContextVar-backed fields (cycle_id, region, sink_id, beacon) that are
automatically injected into log records by BleTrackerFormatter.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token

_cycle_id: ContextVar[str | None] = ContextVar("cycle_id", default=None)
_region: ContextVar[str | None] = ContextVar("region", default=None)
_sink_id: ContextVar[str | None] = ContextVar("sink_id", default=None)
_beacon: ContextVar[str | None] = ContextVar("beacon", default=None)

_ALL_VARS: dict[str, ContextVar[str | None]] = {
    "cycle_id": _cycle_id,
    "region": _region,
    "sink_id": _sink_id,
    "beacon": _beacon,
}


def get_cycle_id() -> str | None:
    return _cycle_id.get()


def get_region() -> str | None:
    return _region.get()


def get_sink_id() -> str | None:
    return _sink_id.get()


def get_beacon() -> str | None:
    return _beacon.get()


@asynccontextmanager
async def log_context(**kwargs: str | None) -> AsyncIterator[None]:
    """Async context manager that sets context fields and restores them on exit.

    Nested managers only revert their own fields; the outer context survives.
    """
    unknown = [key for key in kwargs if key not in _ALL_VARS]
    if unknown:
        raise ValueError(f"Unknown context field: {unknown[0]!r}")
    tokens: list[tuple[ContextVar[str | None], Token[str | None]]] = [
        (_ALL_VARS[key], _ALL_VARS[key].set(value)) for key, value in kwargs.items()
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
