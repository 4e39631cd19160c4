"""Unit tests for nbpilot.browser.navigation — goto with wait-strategy fallback."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from nbpilot.browser.navigation import _build_fallback_chain, open_target
from nbpilot.exceptions import NavigationError

URL = "https://notebooklm.google.com/"


# ---------------------------------------------------------------------------
# _build_fallback_chain
# ---------------------------------------------------------------------------

class TestBuildFallbackChain:
    """Tests for the internal fallback-chain builder."""

    def test_load_falls_back_to_domcontentloaded(self) -> None:
        assert _build_fallback_chain("load") == ["load", "domcontentloaded"]

    def test_domcontentloaded_is_terminal(self) -> None:
        assert _build_fallback_chain("domcontentloaded") == ["domcontentloaded"]

    def test_unknown_strategy_prepends_to_chain(self) -> None:
        assert _build_fallback_chain("networkidle") == ["networkidle", "load", "domcontentloaded"]


# ---------------------------------------------------------------------------
# open_target
# ---------------------------------------------------------------------------

class TestOpenTarget:
    """Tests for open_target."""

    @pytest.mark.anyio
    async def test_success_on_first_try(self) -> None:
        page = MagicMock()
        sentinel = MagicMock(name="response")
        page.goto = AsyncMock(return_value=sentinel)

        result = await open_target(page, URL, timeout_ms=5000)

        assert result is sentinel
        page.goto.assert_awaited_once_with(URL, wait_until="load", timeout=5000)

    @pytest.mark.anyio
    async def test_fallback_on_timeout(self) -> None:
        page = MagicMock()
        sentinel = MagicMock(name="response")
        page.goto = AsyncMock(side_effect=[PlaywrightTimeout("timeout"), sentinel])

        result = await open_target(page, URL, timeout_ms=5000)

        assert result is sentinel
        assert page.goto.await_count == 2
        page.goto.assert_any_await(URL, wait_until="domcontentloaded", timeout=5000)

    @pytest.mark.anyio
    async def test_all_strategies_time_out(self) -> None:
        page = MagicMock()
        page.goto = AsyncMock(side_effect=PlaywrightTimeout("timeout"))

        with pytest.raises(NavigationError, match="timed out after 2 attempt"):
            await open_target(page, URL)

    @pytest.mark.anyio
    async def test_non_retryable_error(self) -> None:
        page = MagicMock()
        page.goto = AsyncMock(side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://x"))

        with pytest.raises(NavigationError, match="name not resolved"):
            await open_target(page, URL)
        page.goto.assert_awaited_once()

    @pytest.mark.anyio
    async def test_other_playwright_errors_propagate(self) -> None:
        page = MagicMock()
        page.goto = AsyncMock(side_effect=PlaywrightError("Target page, context or browser has been closed"))

        with pytest.raises(PlaywrightError, match="has been closed"):
            await open_target(page, URL)
