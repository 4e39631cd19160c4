"""Run monitoring — the event bus and its sinks."""

from nbpilot.monitoring.event_bus import (
    Event,
    EventBus,
    EventSink,
    EventType,
    InMemorySink,
    JsonlSink,
    LoggingSink,
)

__all__ = [
    "Event",
    "EventBus",
    "EventSink",
    "EventType",
    "InMemorySink",
    "JsonlSink",
    "LoggingSink",
]
