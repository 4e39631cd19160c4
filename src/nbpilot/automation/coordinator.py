"""Background coordinator — owns the tab lifecycle and receives triggers.

A trigger hands over a ``startAutomation`` message (or asks the
coordinator to read the clipboard). The coordinator validates the URL,
acknowledges with an info status, opens the target site in a new tab,
waits for it to load plus a fixed settle delay, and passes
``runAutomation`` to a fresh ``PageAutomationDriver``. Failures before
the hand-over (bad URL, no playbook, navigation error) are reported here
so every trigger yields exactly one terminal status.

Runs are not queued or de-duplicated: each trigger starts its own tab.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from nbpilot.automation.driver import ERROR_PREFIX, PageAutomationDriver
from nbpilot.browser.dom import AutomationPage
from nbpilot.browser.navigation import open_target
from nbpilot.exceptions import NbPilotError, UnknownMessageError
from nbpilot.models.messages import RunAutomation, StartAutomation, StatusUpdate, parse_message
from nbpilot.monitoring.event_bus import EventType
from nbpilot.trigger.clipboard import read_clipboard
from nbpilot.trigger.url import validate_source_url

if TYPE_CHECKING:
    from nbpilot.browser.session import BrowserSession
    from nbpilot.monitoring.event_bus import EventBus
    from nbpilot.playbook.matcher import PlaybookMatcher
    from nbpilot.settings.config import Settings

logger = logging.getLogger(__name__)

STARTED_TEXT = "Opening NotebookLM..."


class Coordinator:
    """Turns trigger messages into automation runs.

    Args:
        session: Started browser session new tabs are opened in.
        events: Bus for progress events and status reports.
        settings: Resolved configuration.
        matcher: Playbooks keyed by target URL.
    """

    def __init__(
        self,
        session: BrowserSession,
        events: EventBus,
        settings: Settings,
        matcher: PlaybookMatcher,
    ) -> None:
        self._session = session
        self._events = events
        self._settings = settings
        self._matcher = matcher

    async def handle_message(self, message: StartAutomation | dict[str, Any]) -> StatusUpdate:
        """Handle a trigger message and return the run's terminal status.

        Raises:
            UnknownMessageError: For messages other than ``startAutomation``.
        """
        if isinstance(message, dict):
            message = parse_message(message)
        if not isinstance(message, StartAutomation):
            raise UnknownMessageError(message.action)
        return await self.start(message.url)

    async def start(self, raw_url: str) -> StatusUpdate:
        """Validate *raw_url* and run the automation for it."""
        await self._events.emit(EventType.TRIGGER_RECEIVED, {"url": raw_url[:200]})
        try:
            url = validate_source_url(raw_url)
        except NbPilotError as exc:
            return await self._report_error(exc)
        await self._events.publish_status(StatusUpdate(status=STARTED_TEXT))
        return await self.handle_automation(url)

    async def trigger_from_clipboard(self) -> StatusUpdate:
        """Shortcut path: take the source URL from the clipboard."""
        try:
            text = read_clipboard()
        except NbPilotError as exc:
            return await self._report_error(exc)
        return await self.start(text)

    async def handle_automation(self, url: str) -> StatusUpdate:
        """Open the target site and hand *url* to a page driver."""
        target = self._settings.target
        try:
            playbook = self._matcher.require(target.url)
            page = await self._session.new_page()
            await open_target(page, target.url, timeout_ms=target.navigation_timeout_ms)
            await self._events.emit(EventType.PAGE_OPENED, {"url": target.url})
            # The target's own scripts need a moment after load before its UI responds.
            await asyncio.sleep(target.settle_ms / 1000)
        except (NbPilotError, PlaywrightError) as exc:
            logger.error("Automation error: %s", exc)
            return await self._report_error(exc)

        driver = PageAutomationDriver(
            AutomationPage(page, action_pause_ms=self._settings.automation.action_pause_ms),
            playbook,
            self._events,
            audio=self._settings.audio,
            default_timeout_ms=self._settings.automation.default_timeout_ms,
        )
        return await driver.handle_message(RunAutomation(url=url))

    async def _report_error(self, exc: Exception) -> StatusUpdate:
        status = StatusUpdate.error(f"{ERROR_PREFIX}{exc}")
        await self._events.publish_status(status)
        return status
