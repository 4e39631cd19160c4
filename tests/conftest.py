"""nbpilot test configuration — shared fixtures for unit tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from nbpilot.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio only."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Mock page
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_page() -> AsyncMock:
    """Return an ``AutomationPage`` stand-in where every element is found.

    ``wait_for`` returns a distinct ``MagicMock`` per call so tests can
    tell which element was clicked or filled.
    """
    from nbpilot.browser.dom import AutomationPage

    page = AsyncMock(spec=AutomationPage)
    page.url = "https://notebooklm.google.com/"
    page.wait_for.side_effect = lambda query, timeout_ms: MagicMock(name=f"element:{query.describe()}")
    page.pause.return_value = None
    return page


@pytest.fixture()
def audio_settings() -> Any:
    from nbpilot.settings.config import AudioSettings

    return AudioSettings(format="Deep Dive", language="English", length="Short", focus_prompt="Summarise it")
