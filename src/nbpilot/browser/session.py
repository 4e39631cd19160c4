"""Browser session lifecycle.

Launches Chromium through Playwright with a persistent profile directory
so a signed-in Google session survives between runs. One session is
opened per CLI invocation; each automation run gets a new tab.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page, Playwright

    from nbpilot.settings.config import BrowserSettings

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns the Playwright driver and one persistent browser context.

    Use as an async context manager::

        async with BrowserSession(settings.browser) as session:
            page = await session.new_page()
    """

    def __init__(self, settings: BrowserSettings) -> None:
        self._settings = settings
        self._playwright: Playwright | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def start(self) -> None:
        """Launch the browser (no-op if already running)."""
        if self._context is not None:
            return
        profile_dir = Path(self._settings.user_data_dir)
        profile_dir.mkdir(parents=True, exist_ok=True)

        self._playwright = await async_playwright().start()
        launch_kwargs: dict = {
            "headless": self._settings.headless,
            "args": ["--disable-blink-features=AutomationControlled"],
            "no_viewport": True,
        }
        if self._settings.channel:
            launch_kwargs["channel"] = self._settings.channel
        if self._settings.slow_mo_ms:
            launch_kwargs["slow_mo"] = self._settings.slow_mo_ms

        self._context = await self._playwright.chromium.launch_persistent_context(
            str(profile_dir), **launch_kwargs
        )
        logger.info("Browser started (headless=%s, profile=%s)", self._settings.headless, profile_dir)

    async def stop(self) -> None:
        """Close the context and the Playwright driver."""
        try:
            if self._context is not None:
                await self._context.close()
        except Exception as e:
            logger.warning("Browser close error (non-fatal): %s", e)
        finally:
            self._context = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Browser stopped")

    async def new_page(self) -> Page:
        """Open a new tab in the persistent context."""
        if self._context is None:
            raise RuntimeError("Browser not started. Call start() first.")
        return await self._context.new_page()
