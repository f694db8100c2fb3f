"""Tracker configuration loaded from environment variables."""

from datetime import timedelta
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class TrackerConfig(BaseSettings):
    """Tracker configuration loaded from .env file and BLETRACKER_* variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_file: str | None = Field(default="log/bletracker.log", description="Path to the rotating log file")

    # Scanning
    scan_mode: Literal["foreground", "background"] = Field(
        default="foreground",
        description="Foreground scanning gives a high refresh rate; background never feeds the research sink",
    )

    # Built-in research sink
    send_to_research_sink: bool = Field(default=False, description="Share located sightings with the research endpoint")
    research_sink_url: str = Field(
        default="https://ble.faber.rocks/api/beacon",
        description="REST endpoint of the research sink",
    )
    research_send_interval_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Minimum resend interval of the research sink per beacon",
    )
    default_min_confirmations: int = Field(default=1, ge=1, description="Confirmations required by region queries")

    # Delivery history bounds
    history_max_entries: int = Field(default=10_000, gt=0, description="Max beacons remembered per sink")
    history_retention_factor: int = Field(
        default=4,
        ge=1,
        description="History entries older than this many resend intervals are swept",
    )
    release_history_on_failure: bool = Field(
        default=False,
        description="Forget a send decision when its transmission fails",
    )

    # Timeouts
    transmit_timeout_seconds: float = Field(default=10.0, gt=0)
    observer_timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "BLETRACKER_",
    }

    @model_validator(mode="after")
    def _validate_research_sink(self) -> "TrackerConfig":
        """A research sink that is switched on needs somewhere to send to."""
        if self.send_to_research_sink and not self.research_sink_url.strip():
            raise ValueError("research_sink_url is required when send_to_research_sink is enabled")
        return self

    @property
    def research_send_interval(self) -> timedelta:
        return timedelta(seconds=self.research_send_interval_seconds)
