"""Page-level automation driver.

Receives ``runAutomation`` from the coordinator once the target page is
open, runs the playbook against it and publishes exactly one terminal
``statusUpdate``: success when every required step completed, error
otherwise. Exceptions raised by the page itself (closed tab, detached
element) end up in the same single error report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nbpilot.models.messages import RunAutomation, StatusUpdate
from nbpilot.playbook.executor import PlaybookExecutor

if TYPE_CHECKING:
    from nbpilot.browser.dom import AutomationPage
    from nbpilot.monitoring.event_bus import EventBus
    from nbpilot.playbook.models import Playbook
    from nbpilot.settings.config import AudioSettings

logger = logging.getLogger(__name__)

SUCCESS_TEXT = "Done: audio generation started"
ERROR_PREFIX = "Error: "


def build_variables(url: str, audio: AudioSettings) -> dict[str, str]:
    """Template variables available to playbook steps."""
    return {
        "source.url": url,
        "audio.format": audio.format,
        "audio.language": audio.language,
        "audio.length": audio.length,
        "audio.focus_prompt": audio.focus_prompt,
    }


class PageAutomationDriver:
    """Runs one playbook against one opened page.

    Args:
        page: Wrapper around the tab showing the target site.
        playbook: The step sequence to run.
        events: Bus that receives step progress and the terminal status.
        audio: Customisation values substituted into the playbook.
        default_timeout_ms: Wait limit for steps without their own.
    """

    def __init__(
        self,
        page: AutomationPage,
        playbook: Playbook,
        events: EventBus,
        *,
        audio: AudioSettings,
        default_timeout_ms: int = 5000,
    ) -> None:
        self._page = page
        self._playbook = playbook
        self._events = events
        self._audio = audio
        self._default_timeout_ms = default_timeout_ms

    async def handle_message(self, message: RunAutomation) -> StatusUpdate:
        """Entry point for the coordinator's ``runAutomation`` message."""
        return await self.run(message.url)

    async def run(self, url: str) -> StatusUpdate:
        """Run the playbook with *url* as the source and report the outcome."""
        logger.info("Starting automation on %s with URL: %s", self._page.url, url)
        executor = PlaybookExecutor(
            self._page,
            variables=build_variables(url, self._audio),
            default_timeout_ms=self._default_timeout_ms,
            events=self._events,
        )
        try:
            await self._page.start()
            result = await executor.execute(self._playbook, url)
        except Exception as exc:
            logger.exception("Automation failed")
            status = StatusUpdate.error(f"{ERROR_PREFIX}{exc}")
        else:
            if result.success:
                logger.info("Automation complete")
                status = StatusUpdate.success(SUCCESS_TEXT)
            else:
                status = StatusUpdate.error(f"{ERROR_PREFIX}{result.error}")

        await self._events.publish_status(status)
        return status
