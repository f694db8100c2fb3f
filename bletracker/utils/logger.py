"""Logging configuration for bletracker."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from bletracker.utils.log_context import (
    get_beacon,
    get_cycle_id,
    get_region,
    get_sink_id,
)

# Noisy third-party loggers that should be suppressed to WARNING
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "asyncio",
)


class BleTrackerFormatter(logging.Formatter):
    """Formatter that injects ContextVar fields into log records."""

    def format(self, record: logging.LogRecord) -> str:
        record.cycle_id = get_cycle_id() or "-"
        record.region = get_region() or "-"
        record.sink_id = get_sink_id() or "-"
        record.beacon = get_beacon() or "-"
        return super().format(record)


def configure_logging(
    level: str = "INFO",
    log_file: str | None = "bletracker.log",
) -> None:
    """Configure package-wide logging with console and rotating file handlers.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to the rotating log file. Set to None to disable file logging.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    fmt = (
        "%(asctime)s [%(cycle_id)s] [%(region)s] [%(sink_id)s] [%(beacon)s]"
        " [%(levelname)s] [%(name)s] %(message)s"
    )
    formatter = BleTrackerFormatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger("bletracker")
    root.handlers.clear()
    root.setLevel(numeric_level)

    # Console handler: warnings and above
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.WARNING)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_path,
            when="midnight",
            backupCount=7,
            utc=True,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
