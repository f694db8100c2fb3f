"""Tests for tracker wiring."""

from datetime import timedelta
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from bletracker.config import TrackerConfig
from bletracker.factory import RESEARCH_SINK_ID, bootstrap, create_tracker, research_sink_policy
from bletracker.models import SendMode
from bletracker.sinks.http import HttpSink


@pytest.fixture
def config() -> TrackerConfig:
    return TrackerConfig(_env_file=None, log_file=None)


def test_research_sink_disabled_by_default(config) -> None:
    assert research_sink_policy(config).mode is SendMode.NEVER


def test_research_sink_shares_located_sightings_in_foreground(config) -> None:
    config = config.model_copy(update={"send_to_research_sink": True})
    policy = research_sink_policy(config)
    assert policy.mode is SendMode.LOCATION_REQUIRED
    assert policy.min_resend_interval == timedelta(seconds=60)


def test_background_scanning_never_feeds_research_sink(config) -> None:
    config = config.model_copy(update={"send_to_research_sink": True, "scan_mode": "background"})
    assert research_sink_policy(config).mode is SendMode.NEVER


def test_create_tracker_registers_research_sink(config) -> None:
    tracker = create_tracker(config)

    assert tracker.dispatcher.sink_ids == [RESEARCH_SINK_ID]
    registration = tracker.dispatcher.get(RESEARCH_SINK_ID)
    assert isinstance(registration.sink, HttpSink)
    assert registration.sink.url == config.research_sink_url
    assert tracker.is_armed() is False


def test_bootstrap_configures_logging_from_config(tmp_path) -> None:
    log_file = tmp_path / "log" / "tracker.log"
    config = TrackerConfig(_env_file=None, log_level="DEBUG", log_file=str(log_file))
    try:
        tracker = bootstrap(config)

        package_logger = logging.getLogger("bletracker")
        assert package_logger.level == logging.DEBUG
        assert TimedRotatingFileHandler in {type(h) for h in package_logger.handlers}
        assert log_file.parent.exists()
        assert tracker.dispatcher.sink_ids == [RESEARCH_SINK_ID]
    finally:
        package_logger = logging.getLogger("bletracker")
        for handler in package_logger.handlers:
            handler.close()
        package_logger.handlers.clear()
        package_logger.setLevel(logging.NOTSET)
