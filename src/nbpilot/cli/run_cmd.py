"""CLI commands that trigger automation runs.

``run`` is the manual trigger: the URL comes from the argument or, when
omitted, from the clipboard. ``listen`` keeps a browser open and starts
a run each time the global shortcut is pressed.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.markup import escape

from nbpilot.exceptions import NbPilotError
from nbpilot.models.messages import StatusType

if TYPE_CHECKING:
    from nbpilot.browser.session import BrowserSession
    from nbpilot.monitoring.event_bus import EventBus
    from nbpilot.settings.config import Settings

console = Console()
logger = logging.getLogger(__name__)


def _prepare(headless: Optional[bool]) -> "Settings":
    """Resolve settings, apply CLI overrides and configure logging."""
    from nbpilot.logging_config import configure_logging
    from nbpilot.settings import get_settings

    settings = get_settings()
    if headless is not None:
        settings = settings.model_copy(
            update={"browser": settings.browser.model_copy(update={"headless": headless})}
        )
    configure_logging("DEBUG" if settings.debug else settings.log_level, json_format=settings.log_json)
    return settings


def _resolve_source(url: Optional[str]) -> str:
    """Return the validated source URL from the argument or the clipboard.

    Raises:
        NbPilotError: If the clipboard cannot be read or the URL is invalid.
    """
    from nbpilot.trigger.clipboard import read_url_from_clipboard
    from nbpilot.trigger.url import validate_source_url

    if url is None:
        console.print("[dim]Reading URL from clipboard...[/dim]")
        return read_url_from_clipboard()
    return validate_source_url(url)


def _build_bus(events: bool) -> "EventBus":
    from nbpilot.cli.panel import ControlPanel
    from nbpilot.monitoring.event_bus import EventBus, JsonlSink, LoggingSink

    bus = EventBus()
    bus.add_sink(LoggingSink())
    bus.add_sink(ControlPanel(console))
    if events:
        bus.add_sink(JsonlSink(sys.stderr))
    return bus


def _build_matcher(settings: "Settings"):
    from nbpilot.playbook.loader import load_configured_playbooks
    from nbpilot.playbook.matcher import PlaybookMatcher

    return PlaybookMatcher(load_configured_playbooks(settings.automation.playbook_path))


# ---------------------------------------------------------------------------
# nbpilot run [URL]
# ---------------------------------------------------------------------------


async def _open_session(settings: "Settings", bus: "EventBus") -> "BrowserSession | None":
    """Launch the browser, or publish the run's error status and return ``None``.

    A locked profile directory, a missing browser build or an unknown
    ``browser.channel`` all fail here, before any tab exists.
    """
    from playwright.async_api import Error as PlaywrightError

    from nbpilot.automation.driver import ERROR_PREFIX
    from nbpilot.browser.session import BrowserSession
    from nbpilot.models.messages import StatusUpdate

    session = BrowserSession(settings.browser)
    try:
        await session.start()
    except (PlaywrightError, OSError) as exc:
        logger.error("Browser launch failed: %s", exc)
        await session.stop()
        await bus.publish_status(StatusUpdate.error(f"{ERROR_PREFIX}{exc}"))
        return None
    return session


async def _run_once(settings: "Settings", bus: "EventBus", url: str, *, keep_open: bool = False):
    from nbpilot.automation.coordinator import Coordinator
    from nbpilot.models.messages import StartAutomation

    matcher = _build_matcher(settings)
    session = await _open_session(settings, bus)
    if session is None:
        return bus.last_status
    async with session:
        coordinator = Coordinator(session, bus, settings, matcher)
        status = await coordinator.handle_message(StartAutomation(url=url))
        if keep_open:
            await asyncio.to_thread(input, "Press Enter to close the browser...")
        return status


def run(
    url: Optional[str] = typer.Argument(None, help="Source URL. Read from the clipboard when omitted."),
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Override browser.headless."),
    events: bool = typer.Option(False, "--events", help="Emit JSONL events to stderr."),
    keep_open: bool = typer.Option(False, "--keep-open", help="Wait for Enter before closing the browser."),
) -> None:
    """Open NotebookLM and start an Audio Overview for a URL."""
    try:
        source = _resolve_source(url)
    except NbPilotError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from None

    settings = _prepare(headless)
    bus = _build_bus(events)
    console.print(f"[bold]URL:[/bold] {escape(source)}")

    status = asyncio.run(_run_once(settings, bus, source, keep_open=keep_open))
    if status.type == StatusType.ERROR:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# nbpilot listen
# ---------------------------------------------------------------------------


def _log_failure(future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Shortcut run failed: %s", exc, exc_info=exc)


async def _listen(settings: "Settings", bus: "EventBus"):
    """Serve shortcut presses until interrupted.

    Returns only when the browser could not be launched, with the error
    status that was published for it.
    """
    from nbpilot.automation.coordinator import Coordinator

    loop = asyncio.get_running_loop()
    matcher = _build_matcher(settings)
    session = await _open_session(settings, bus)
    if session is None:
        return bus.last_status

    from nbpilot.trigger.hotkey import HotkeyListener

    async with session:
        coordinator = Coordinator(session, bus, settings, matcher)

        def _on_hotkey() -> None:
            future = asyncio.run_coroutine_threadsafe(coordinator.trigger_from_clipboard(), loop)
            future.add_done_callback(_log_failure)

        with HotkeyListener(settings.trigger.hotkey, _on_hotkey):
            console.print(
                f"Copy a URL and press [bold]{escape(settings.trigger.hotkey)}[/bold]. Ctrl+C to quit."
            )
            await asyncio.Event().wait()


def listen(
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Override browser.headless."),
    events: bool = typer.Option(False, "--events", help="Emit JSONL events to stderr."),
) -> None:
    """Start a run from the clipboard each time the shortcut is pressed."""
    settings = _prepare(headless)
    bus = _build_bus(events)
    try:
        failure = asyncio.run(_listen(settings, bus))
    except KeyboardInterrupt:
        console.print("\nStopped.")
        return
    except ValueError as e:
        console.print(f"[red]✗ Invalid hotkey:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from None
    if failure is not None:
        raise typer.Exit(code=1)
