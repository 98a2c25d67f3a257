"""Event aggregation exports."""

from .event_aggregator import GENERIC_FAILURE_PREFIX, EventAggregator, is_generic_failure
from .stack_events import (
    CompleteEvent,
    ConcurrentUpdateEvent,
    EventCallback,
    Receiver,
    RunError,
    StackCommandEvent,
    StackEvent,
    Warp,
)

__all__ = [
    "GENERIC_FAILURE_PREFIX",
    "EventAggregator",
    "is_generic_failure",
    "CompleteEvent",
    "ConcurrentUpdateEvent",
    "EventCallback",
    "Receiver",
    "RunError",
    "StackCommandEvent",
    "StackEvent",
    "Warp",
]
