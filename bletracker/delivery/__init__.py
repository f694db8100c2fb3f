"""Per-sink delivery: gating, registry and asynchronous transmission."""

from bletracker.delivery.dispatcher import SinkDispatcher
from bletracker.delivery.gate import DeliveryGate, DeliveryHistory
from bletracker.delivery.sink import Sink, SinkRegistration

__all__ = ["DeliveryGate", "DeliveryHistory", "Sink", "SinkDispatcher", "SinkRegistration"]
