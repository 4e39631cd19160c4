"""Event bus — decouples the coordinator and driver from the display surface.

* Type-safe event types via ``EventType`` enum.
* Multiple sink pattern: a single bus emits to every registered
  ``EventSink`` (logger, JSONL stream, the CLI control panel, in-memory
  buffer for tests).
* ``publish_status`` wraps a ``StatusUpdate`` message in a
  ``STATUS_UPDATE`` event; terminal reports (success or error) are
  counted so callers can check that a run reported exactly once.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from nbpilot.models.messages import StatusType, StatusUpdate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


class EventType(str, Enum):
    """All event types emitted during a run."""

    TRIGGER_RECEIVED = "trigger_received"
    PAGE_OPENED = "page_opened"
    STEP_STARTED = "step_started"
    STEP_COMPLETED = "step_completed"
    STATUS_UPDATE = "status_update"
    LOG = "log"


class Event(BaseModel):
    """Structured event emitted by the event bus."""

    event_type: EventType
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    data: dict[str, Any] = Field(default_factory=dict)

    def to_jsonl(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return self.model_dump_json()

    @property
    def status(self) -> StatusUpdate | None:
        """The carried ``StatusUpdate`` for STATUS_UPDATE events."""
        if self.event_type != EventType.STATUS_UPDATE:
            return None
        return StatusUpdate(**self.data)


# ---------------------------------------------------------------------------
# Sink protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class EventSink(Protocol):
    """Protocol for event consumers."""

    async def handle_event(self, event: Event) -> None:
        """Process a single event."""
        ...


# ---------------------------------------------------------------------------
# Built-in sinks
# ---------------------------------------------------------------------------


class LoggingSink:
    """Emit events to the Python logger at DEBUG level."""

    def __init__(self, logger_name: str = "nbpilot.events") -> None:
        self._logger = logging.getLogger(logger_name)

    async def handle_event(self, event: Event) -> None:
        self._logger.debug(
            "%s: %s",
            event.event_type.value,
            json.dumps(event.data, default=str, ensure_ascii=False)[:200],
        )


class InMemorySink:
    """Collect events in a list — useful for testing."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def handle_event(self, event: Event) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def statuses(self) -> list[StatusUpdate]:
        """All status updates received, in order."""
        return [e.status for e in self.events if e.status is not None]

    @property
    def terminal_statuses(self) -> list[StatusUpdate]:
        return [s for s in self.statuses if s.is_terminal]


class JsonlSink:
    """Write events as JSONL lines to a file-like object."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream

    async def handle_event(self, event: Event) -> None:
        self._stream.write(event.to_jsonl() + "\n")
        if hasattr(self._stream, "flush"):
            self._stream.flush()


# ---------------------------------------------------------------------------
# Event bus
# ---------------------------------------------------------------------------


class EventBus:
    """Central event dispatcher for run-to-display communication."""

    def __init__(self) -> None:
        self._sinks: list[EventSink] = []
        self._terminal_count = 0
        self._last_status: StatusUpdate | None = None

    def add_sink(self, sink: EventSink) -> None:
        """Register an event sink."""
        self._sinks.append(sink)

    async def emit(self, event_type: EventType | str, data: dict[str, Any] | None = None) -> None:
        """Emit an event to all registered sinks.

        A failing sink is logged and does not stop delivery to the others.
        """
        if isinstance(event_type, str):
            try:
                event_type = EventType(event_type)
            except ValueError:
                event_type = EventType.LOG

        event = Event(event_type=event_type, data=data or {})
        for sink in self._sinks:
            try:
                await sink.handle_event(event)
            except Exception as exc:
                logger.warning("EventBus sink error (%s): %s", type(sink).__name__, exc)

    async def publish_status(self, update: StatusUpdate) -> None:
        """Emit a ``StatusUpdate`` message to the display surface."""
        if update.is_terminal:
            self._terminal_count += 1
            self._last_status = update
        log = logger.error if update.type == StatusType.ERROR else logger.info
        log("Status: %s", update.status)
        await self.emit(EventType.STATUS_UPDATE, update.model_dump(mode="json"))

    @property
    def terminal_count(self) -> int:
        """Number of success/error reports published so far."""
        return self._terminal_count

    @property
    def last_status(self) -> StatusUpdate | None:
        """The most recent terminal report, if any."""
        return self._last_status
