"""Playbook executor — run a playbook's steps in order against the page.

Each step locates its element through the locator chain (a fallback is
only tried after the previous locator timed out), acts on it, then
pauses for the step's ``settle_ms``. There is no branching beyond that
static fallback chain and the ``skip_if`` check.

Failure handling:

* **Optional steps** are logged and recorded as failed; the run goes on.
* **Required steps** abort the remaining steps. There is no rollback:
  the target page keeps whatever state the earlier steps left.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Mapping

from nbpilot.exceptions import StepFailedError, WaitTimeoutError
from nbpilot.models.query import ElementQuery
from nbpilot.monitoring.event_bus import EventBus, EventType
from nbpilot.playbook.models import (
    Playbook,
    PlaybookResult,
    PlaybookStep,
    PlaybookStepResult,
    PlaybookStepType,
    StepOutcome,
)

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle

    from nbpilot.browser.dom import AutomationPage

logger = logging.getLogger(__name__)

# Regex for template variables: {source.url}, {audio.language}, etc.
_TEMPLATE_RE = re.compile(r"\{(\w+(?:\.\w+)*)\}")


def resolve_template(template: str, variables: Mapping[str, str]) -> str:
    """Replace ``{namespace.key}`` placeholders with values from *variables*.

    Unresolved placeholders are left as-is and logged as warnings.
    """
    if "{" not in template:
        return template

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        value = variables.get(key)
        if value is not None:
            return str(value)
        logger.warning("Unresolved template variable: %s", key)
        return match.group(0)

    return _TEMPLATE_RE.sub(_replace, template)


def _resolve_query(query: ElementQuery, variables: Mapping[str, str]) -> ElementQuery:
    return query.model_copy(
        update={
            "selector": resolve_template(query.selector, variables),
            "text": resolve_template(query.text, variables),
        }
    )


class PlaybookExecutor:
    """Executes a playbook's steps sequentially against an ``AutomationPage``.

    Args:
        page: The page wrapper the steps act on.
        variables: Values for template placeholders, keyed ``namespace.key``.
        default_timeout_ms: Wait limit for steps that do not set their own.
        events: Optional bus that receives per-step progress events.
    """

    def __init__(
        self,
        page: AutomationPage,
        *,
        variables: Mapping[str, str] | None = None,
        default_timeout_ms: int = 5000,
        events: EventBus | None = None,
    ) -> None:
        self._page = page
        self._events = events
        self._variables = dict(variables or {})
        self._default_timeout_ms = default_timeout_ms

    async def execute(self, playbook: Playbook, url: str) -> PlaybookResult:
        """Execute all steps in the playbook.

        Args:
            playbook: The playbook to execute.
            url: The source URL being relayed (for the result record).

        Returns:
            A ``PlaybookResult``. ``success`` is ``False`` when a required
            step failed; ``error`` then holds the user-facing reason.
        """
        result = PlaybookResult(
            playbook_id=playbook.playbook_id,
            url=url,
            success=False,
            total_steps=len(playbook.steps),
            started_at=datetime.now(timezone.utc),
        )
        start_time = time.monotonic()
        total = len(playbook.steps)

        for idx, step in enumerate(playbook.steps):
            logger.info("Step %d/%d: %s", idx + 1, total, step.label(idx))
            await self._emit(EventType.STEP_STARTED, {"index": idx, "description": step.label(idx)})
            step_result = await self._run_step(idx, step)
            result.step_results.append(step_result)
            await self._emit(EventType.STEP_COMPLETED, step_result.model_dump(mode="json"))

            if step_result.success:
                result.completed_steps += 1
                continue

            if step.optional:
                logger.warning(
                    "Optional step %d/%d skipped after failure: %s",
                    idx + 1,
                    total,
                    step_result.error,
                )
                continue

            result.error = str(StepFailedError(idx, step.description, step_result.error))
            break
        else:
            result.success = True

        result.duration_sec = time.monotonic() - start_time
        result.completed_at = datetime.now(timezone.utc)

        logger.info(
            "Playbook %s: %s (%d/%d steps in %.1fs)",
            playbook.playbook_id,
            "SUCCESS" if result.success else "FAILED",
            result.completed_steps,
            result.total_steps,
            result.duration_sec,
        )
        return result

    # ------------------------------------------------------------------
    # Step execution
    # ------------------------------------------------------------------

    async def _run_step(self, index: int, step: PlaybookStep) -> PlaybookStepResult:
        """Run one step and record how it ended."""
        step_start = time.monotonic()
        record = PlaybookStepResult(
            step_index=index,
            action=step.action,
            description=step.description,
            outcome=StepOutcome.COMPLETED,
        )

        try:
            if step.skip_if is not None and await self._is_present(step.skip_if, step.skip_if_timeout_ms):
                logger.info(
                    "Skipping %s: %s already present",
                    step.label(index),
                    _resolve_query(step.skip_if, self._variables).describe(),
                )
                record.outcome = StepOutcome.SKIPPED
            else:
                record.locator_used = await self._dispatch_action(step)
        except Exception as exc:
            record.outcome = StepOutcome.FAILED
            record.error = str(exc)
            logger.debug("Step %d error: %s", index + 1, exc)

        record.duration_sec = time.monotonic() - step_start
        return record

    async def _dispatch_action(self, step: PlaybookStep) -> int | None:
        """Perform the step's action.

        Returns:
            Index of the locator that matched, or ``None`` for WAIT steps.
        """
        timeout_ms = step.timeout_ms if step.timeout_ms is not None else self._default_timeout_ms

        if step.action == PlaybookStepType.WAIT:
            await self._page.pause(int(step.value or "0"))
            return None

        element, used = await self._locate(step.locators, timeout_ms)

        if step.action == PlaybookStepType.CLICK:
            await self._page.click(element)

        elif step.action == PlaybookStepType.TYPE:
            await self._page.fill(element, resolve_template(step.value, self._variables))

        elif step.action == PlaybookStepType.SELECT:
            await self._page.click(element)
            await self._page.pause(step.settle_ms)
            if step.option is None:
                raise ValueError("select steps need an 'option' query")
            option = await self._wait(step.option, timeout_ms)
            await self._page.click(option)

        await self._page.pause(step.settle_ms)
        return used

    async def _locate(self, locators: list[ElementQuery], timeout_ms: int) -> tuple[ElementHandle, int]:
        """Wait for the first locator in the chain that matches.

        Raises:
            WaitTimeoutError: From the last locator when none match.
        """
        last = len(locators) - 1
        for i, query in enumerate(locators):
            try:
                return await self._wait(query, timeout_ms), i
            except WaitTimeoutError as exc:
                if i == last:
                    raise
                logger.info("Locator %s not found; trying fallback", exc.description)
        raise ValueError("step has no locators")

    async def _wait(self, query: ElementQuery, timeout_ms: int) -> ElementHandle:
        """Resolve placeholders in *query* and wait for it.

        The query's own ``timeout_ms``, when set, replaces *timeout_ms*.
        """
        resolved = _resolve_query(query, self._variables)
        limit = resolved.timeout_ms if resolved.timeout_ms is not None else timeout_ms
        return await self._page.wait_for(resolved, limit)

    async def _emit(self, event_type: EventType, data: dict) -> None:
        if self._events is not None:
            await self._events.emit(event_type, data)

    async def _is_present(self, query: ElementQuery, timeout_ms: int) -> bool:
        try:
            await self._wait(query, timeout_ms)
        except WaitTimeoutError:
            return False
        return True
