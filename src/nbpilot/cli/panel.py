"""Control panel — renders run progress and the terminal status.

Registered as an event sink. ``busy`` mirrors the start button of a
control surface: set when a trigger arrives, cleared by the success or
error report that ends the run.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from nbpilot.models.messages import StatusType
from nbpilot.monitoring.event_bus import Event, EventType

_STATUS_STYLE = {
    StatusType.INFO: "",
    StatusType.SUCCESS: "green",
    StatusType.ERROR: "red",
}


class ControlPanel:
    """Event sink printing a run's progress to a rich console."""

    def __init__(self, console: Console, *, show_steps: bool = True) -> None:
        self._console = console
        self._show_steps = show_steps
        self.busy = False
        self.last_text = ""
        self.last_type: StatusType | None = None

    async def handle_event(self, event: Event) -> None:
        data = event.data
        if event.event_type == EventType.TRIGGER_RECEIVED:
            self.busy = True
            self._console.print(f"[bold]Starting:[/bold] {_text(data, 'url')}")
        elif event.event_type == EventType.PAGE_OPENED:
            self._console.print(f"[dim]Opened {_text(data, 'url')}[/dim]")
        elif event.event_type == EventType.STEP_STARTED and self._show_steps:
            number = int(data.get("index", 0)) + 1
            self._console.print(f"  [dim]{number:2d}.[/dim] {_text(data, 'description')}")
        elif event.event_type == EventType.STEP_COMPLETED and self._show_steps:
            outcome = data.get("outcome", "")
            if outcome == "skipped":
                self._console.print("      [dim]skipped[/dim]")
            elif outcome == "failed":
                self._console.print(f"      [yellow]failed:[/yellow] {_text(data, 'error')}")
        elif event.event_type == EventType.STATUS_UPDATE:
            status = event.status
            if status is None:
                return
            self.last_text = status.status
            self.last_type = status.type
            style = _STATUS_STYLE[status.type]
            mark = {"success": "✓ ", "error": "✗ "}.get(status.type.value, "")
            body = escape(status.status)
            text = f"[{style}]{mark}{body}[/{style}]" if style else body
            self._console.print(text)
            if status.is_terminal:
                self.busy = False


def _text(data: dict, key: str) -> str:
    return escape(str(data.get(key, "")))
