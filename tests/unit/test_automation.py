"""Unit tests for the coordinator and the page automation driver.

Every run must end in exactly one terminal status report, whether it
fails before a tab is opened, while opening it, or inside the playbook.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from nbpilot.automation.coordinator import STARTED_TEXT, Coordinator
from nbpilot.automation.driver import ERROR_PREFIX, SUCCESS_TEXT, PageAutomationDriver, build_variables
from nbpilot.exceptions import ClipboardError, NavigationError, UnknownMessageError, WaitTimeoutError
from nbpilot.models.messages import RunAutomation, StartAutomation, StatusType
from nbpilot.models.query import ElementQuery
from nbpilot.monitoring.event_bus import EventBus, EventType, InMemorySink
from nbpilot.playbook.loader import load_configured_playbooks
from nbpilot.playbook.matcher import PlaybookMatcher
from nbpilot.playbook.models import Playbook, PlaybookStep, PlaybookStepType
from nbpilot.settings.config import Settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bus() -> tuple[EventBus, InMemorySink]:
    bus = EventBus()
    sink = InMemorySink()
    bus.add_sink(sink)
    return bus, sink


def _playbook() -> Playbook:
    return Playbook(
        playbook_id="simple",
        url_pattern=r"^https://notebooklm\.google\.com/",
        steps=[
            PlaybookStep(action=PlaybookStepType.TYPE, locators=[ElementQuery.css("textarea")], value="{source.url}"),
            PlaybookStep(action=PlaybookStepType.CLICK, locators=[ElementQuery.css("button.go")], description="Generate"),
        ],
    )


def _settings() -> Settings:
    return Settings(target={"settle_ms": 0})


def _coordinator(bus: EventBus, *, matcher: PlaybookMatcher | None = None) -> tuple[Coordinator, MagicMock]:
    session = MagicMock()
    session.new_page = AsyncMock(return_value=MagicMock(name="page"))
    coordinator = Coordinator(
        session,
        bus,
        _settings(),
        matcher if matcher is not None else PlaybookMatcher(load_configured_playbooks("")),
    )
    return coordinator, session


# ===================================================================
# Driver
# ===================================================================


class TestBuildVariables:
    def test_includes_source_and_audio(self, audio_settings) -> None:
        variables = build_variables("https://example.com/", audio_settings)
        assert variables == {
            "source.url": "https://example.com/",
            "audio.format": "Deep Dive",
            "audio.language": "English",
            "audio.length": "Short",
            "audio.focus_prompt": "Summarise it",
        }


class TestPageAutomationDriver:
    """Tests for PageAutomationDriver."""

    @pytest.mark.anyio
    async def test_success_reported_once(self, mock_page, audio_settings) -> None:
        bus, sink = _bus()
        driver = PageAutomationDriver(mock_page, _playbook(), bus, audio=audio_settings)

        status = await driver.handle_message(RunAutomation(url="https://example.com/article"))

        assert status.type == StatusType.SUCCESS
        assert status.status == SUCCESS_TEXT
        assert len(sink.terminal_statuses) == 1
        assert bus.terminal_count == 1
        mock_page.start.assert_awaited_once()
        assert mock_page.fill.await_args.args[1] == "https://example.com/article"

    @pytest.mark.anyio
    async def test_required_step_failure_reports_error(self, mock_page, audio_settings) -> None:
        bus, sink = _bus()

        def _wait_for(query, timeout_ms):
            if query.selector == "button.go":
                raise WaitTimeoutError(query.describe(), timeout_ms)
            return MagicMock()

        mock_page.wait_for.side_effect = _wait_for
        driver = PageAutomationDriver(mock_page, _playbook(), bus, audio=audio_settings, default_timeout_ms=100)

        status = await driver.run("https://example.com/")

        assert status.type == StatusType.ERROR
        assert status.status.startswith(ERROR_PREFIX)
        assert "Generate failed" in status.status
        assert "100ms" in status.status
        assert [s.type for s in sink.terminal_statuses] == [StatusType.ERROR]

    @pytest.mark.anyio
    async def test_page_error_reports_error(self, mock_page, audio_settings) -> None:
        bus, sink = _bus()
        mock_page.start.side_effect = RuntimeError("Target closed")
        driver = PageAutomationDriver(mock_page, _playbook(), bus, audio=audio_settings)

        status = await driver.run("https://example.com/")

        assert status.type == StatusType.ERROR
        assert status.status == "Error: Target closed"
        assert len(sink.terminal_statuses) == 1

    @pytest.mark.anyio
    async def test_optional_failures_still_succeed(self, mock_page, audio_settings) -> None:
        bus, sink = _bus()
        pb = _playbook()
        pb.steps.insert(
            1,
            PlaybookStep(
                action=PlaybookStepType.CLICK,
                locators=[ElementQuery.by_text("div.tile-label", "{audio.format}")],
                optional=True,
            ),
        )

        seen_texts: list[str] = []

        def _wait_for(query, timeout_ms):
            if query.selector == "div.tile-label":
                seen_texts.append(query.text)
                raise WaitTimeoutError(query.describe(), timeout_ms)
            return MagicMock()

        mock_page.wait_for.side_effect = _wait_for
        driver = PageAutomationDriver(mock_page, pb, bus, audio=audio_settings)

        status = await driver.run("https://example.com/")

        assert status.type == StatusType.SUCCESS
        assert len(sink.terminal_statuses) == 1
        assert seen_texts == ["Deep Dive"]


# ===================================================================
# Coordinator
# ===================================================================


class TestCoordinator:
    """Tests for Coordinator."""

    @pytest.mark.anyio
    async def test_invalid_url_rejected_before_opening_tab(self) -> None:
        bus, sink = _bus()
        coordinator, session = _coordinator(bus)

        status = await coordinator.start("ftp://example.com/file")

        assert status.type == StatusType.ERROR
        assert status.status == "Error: Not an http/https URL (ftp:)"
        session.new_page.assert_not_awaited()
        assert len(sink.terminal_statuses) == 1
        assert sink.events[0].event_type == EventType.TRIGGER_RECEIVED

    @pytest.mark.anyio
    async def test_empty_url_rejected(self) -> None:
        bus, _ = _bus()
        coordinator, session = _coordinator(bus)

        status = await coordinator.start("   ")

        assert status.status == "Error: No URL provided (clipboard is empty)"
        session.new_page.assert_not_awaited()

    @pytest.mark.anyio
    async def test_valid_url_hands_over_to_driver(self) -> None:
        bus, sink = _bus()
        coordinator, session = _coordinator(bus)
        driver = MagicMock()
        driver.handle_message = AsyncMock(return_value=MagicMock(type=StatusType.SUCCESS))

        with (
            patch("nbpilot.automation.coordinator.open_target", new=AsyncMock()) as open_target,
            patch("nbpilot.automation.coordinator.PageAutomationDriver", return_value=driver) as driver_cls,
        ):
            await coordinator.start("https://Example.com")

        session.new_page.assert_awaited_once()
        open_target.assert_awaited_once()
        assert open_target.await_args.args[1] == "https://notebooklm.google.com/"
        driver_cls.assert_called_once()
        message = driver.handle_message.await_args.args[0]
        assert isinstance(message, RunAutomation)
        assert message.url == "https://example.com/"
        assert EventType.PAGE_OPENED in [e.event_type for e in sink.events]

    @pytest.mark.anyio
    async def test_acknowledges_before_terminal_status(self) -> None:
        bus, sink = _bus()
        coordinator, session = _coordinator(bus)
        session.new_page.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        await coordinator.handle_message({"action": "startAutomation", "url": "https://example.com"})

        assert [(s.type, s.status) for s in sink.statuses] == [
            (StatusType.INFO, STARTED_TEXT),
            (StatusType.ERROR, "Error: net::ERR_NAME_NOT_RESOLVED"),
        ]
        assert len(sink.terminal_statuses) == 1

    @pytest.mark.anyio
    async def test_invalid_url_not_acknowledged(self) -> None:
        bus, sink = _bus()
        coordinator, _ = _coordinator(bus)

        await coordinator.start("mailto:someone@example.com")

        assert [s.type for s in sink.statuses] == [StatusType.ERROR]

    @pytest.mark.anyio
    async def test_navigation_error_reported_once(self) -> None:
        bus, sink = _bus()
        coordinator, _ = _coordinator(bus)
        failing = AsyncMock(side_effect=NavigationError("https://notebooklm.google.com/", "name not resolved"))

        with (
            patch("nbpilot.automation.coordinator.open_target", new=failing),
            patch("nbpilot.automation.coordinator.PageAutomationDriver") as driver_cls,
        ):
            status = await coordinator.start("https://example.com/")

        assert status.type == StatusType.ERROR
        assert "name not resolved" in status.status
        driver_cls.assert_not_called()
        assert len(sink.terminal_statuses) == 1

    @pytest.mark.anyio
    async def test_no_playbook_for_target(self) -> None:
        bus, sink = _bus()
        coordinator, session = _coordinator(bus, matcher=PlaybookMatcher())

        status = await coordinator.start("https://example.com/")

        assert status.type == StatusType.ERROR
        assert "No playbook matches" in status.status
        session.new_page.assert_not_awaited()

    @pytest.mark.anyio
    async def test_handle_message_accepts_dict(self) -> None:
        bus, _ = _bus()
        coordinator, _ = _coordinator(bus)
        with patch.object(coordinator, "handle_automation", new=AsyncMock()) as handle:
            await coordinator.handle_message({"action": "startAutomation", "url": "https://example.com/x"})
        handle.assert_awaited_once_with("https://example.com/x")

    @pytest.mark.anyio
    async def test_handle_message_accepts_model(self) -> None:
        bus, _ = _bus()
        coordinator, _ = _coordinator(bus)
        with patch.object(coordinator, "handle_automation", new=AsyncMock()) as handle:
            await coordinator.handle_message(StartAutomation(url="https://example.com/"))
        handle.assert_awaited_once()

    @pytest.mark.anyio
    async def test_handle_message_rejects_other_actions(self) -> None:
        bus, _ = _bus()
        coordinator, _ = _coordinator(bus)
        with pytest.raises(UnknownMessageError):
            await coordinator.handle_message({"action": "runAutomation", "url": "https://example.com/"})
        with pytest.raises(UnknownMessageError):
            await coordinator.handle_message({"action": "bogus"})

    @pytest.mark.anyio
    async def test_trigger_from_clipboard(self) -> None:
        bus, _ = _bus()
        coordinator, _ = _coordinator(bus)
        with (
            patch("nbpilot.automation.coordinator.read_clipboard", return_value="https://example.com/c"),
            patch.object(coordinator, "handle_automation", new=AsyncMock()) as handle,
        ):
            await coordinator.trigger_from_clipboard()
        handle.assert_awaited_once_with("https://example.com/c")

    @pytest.mark.anyio
    async def test_clipboard_failure_reported(self) -> None:
        bus, sink = _bus()
        coordinator, session = _coordinator(bus)
        with patch(
            "nbpilot.automation.coordinator.read_clipboard",
            side_effect=ClipboardError("Could not read the clipboard"),
        ):
            status = await coordinator.trigger_from_clipboard()

        assert status.status == "Error: Could not read the clipboard"
        session.new_page.assert_not_awaited()
        assert len(sink.terminal_statuses) == 1
