"""Notification fan-out and delivery engine."""

from .aggregator import aggregate, summarize_attempt
from .coordinator import FallbackCoordinator, build_device_data
from .dispatcher import DeliveryDispatcher
from .resolver import AudienceResolver

__all__ = [
    "AudienceResolver",
    "DeliveryDispatcher",
    "FallbackCoordinator",
    "aggregate",
    "build_device_data",
    "summarize_attempt",
]
