"""Wires a configured BeaconTracker together."""

from __future__ import annotations

import logging

from bletracker.config import TrackerConfig
from bletracker.delivery.dispatcher import SinkDispatcher
from bletracker.models import DeliveryPolicy, SendMode
from bletracker.observers import ObserverFanout
from bletracker.sinks.http import HttpSink
from bletracker.tracker import BeaconTracker
from bletracker.utils.logger import configure_logging

logger = logging.getLogger(__name__)

RESEARCH_SINK_ID = "research"


def research_sink_policy(config: TrackerConfig) -> DeliveryPolicy:
    """Policy of the built-in research sink.

    Only located sightings from a foreground session are shared; background
    scanning is too coarse, so the sink stays registered but never sends.
    """
    share = config.send_to_research_sink and config.scan_mode == "foreground"
    return DeliveryPolicy(
        mode=SendMode.LOCATION_REQUIRED if share else SendMode.NEVER,
        min_resend_interval=config.research_send_interval,
        min_confirmations=config.default_min_confirmations,
    )


def create_tracker(config: TrackerConfig) -> BeaconTracker:
    """Build a tracker from *config*, with the research sink pre-registered."""
    dispatcher = SinkDispatcher(
        history_max_entries=config.history_max_entries,
        history_retention_factor=config.history_retention_factor,
        transmit_timeout=config.transmit_timeout_seconds,
        release_history_on_failure=config.release_history_on_failure,
    )
    tracker = BeaconTracker(
        dispatcher=dispatcher,
        fanout=ObserverFanout(timeout=config.observer_timeout_seconds),
    )

    research_sink = HttpSink(
        config.research_sink_url,
        sink_id=RESEARCH_SINK_ID,
        timeout=config.transmit_timeout_seconds,
    )
    policy = research_sink_policy(config)
    tracker.register_sink(research_sink, policy)
    logger.info(
        "Tracker created (scan_mode=%s, research sink mode=%s)",
        config.scan_mode,
        policy.mode.value,
    )
    return tracker


def bootstrap(config: TrackerConfig | None = None) -> BeaconTracker:
    """Host entry point: load config, set up logging, then build the tracker."""
    config = config or TrackerConfig()
    configure_logging(level=config.log_level, log_file=config.log_file)
    return create_tracker(config)
