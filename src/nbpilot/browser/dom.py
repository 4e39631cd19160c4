"""Playwright-backed element lookup and interaction.

``PageMutationSource`` installs a ``MutationObserver`` in the page and
forwards each (coalesced) batch of mutations to Python through an
exposed function. ``AutomationPage`` combines it with
``wait_for_condition`` to wait for elements by selector or by visible
text, and wraps the click / type interactions the playbook steps need.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Callable

from nbpilot.browser.waits import MutationHub, Unsubscribe, wait_for_condition
from nbpilot.models.query import ElementQuery

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

logger = logging.getLogger(__name__)

_BINDING_NAME = "__nbpilotTreeChanged"

# Mutations inside one task are reported once.
_OBSERVER_JS = """
(binding) => {
  if (window.__nbpilotObserver) return;
  let pending = false;
  const observer = new MutationObserver(() => {
    if (pending) return;
    pending = true;
    setTimeout(() => {
      pending = false;
      if (typeof window[binding] === 'function') window[binding]();
    }, 0);
  });
  observer.observe(document, { childList: true, subtree: true, attributes: true });
  window.__nbpilotObserver = observer;
}
"""

_FIND_JS = """
([kind, selector, text, closest, visibleOnly]) => {
  const isVisible = (el) =>
    !!(el && (el.offsetWidth || el.offsetHeight || el.getClientRects().length));
  const hasText = (el) => {
    if (kind !== 'text') return true;
    const label = el.getAttribute('aria-label') || '';
    return (el.textContent || '').includes(text) || label.includes(text);
  };
  for (const el of document.querySelectorAll(selector)) {
    if (visibleOnly && !isVisible(el)) continue;
    if (!hasText(el)) continue;
    if (!closest.length) return el;
    for (const ancestor of closest) {
      const target = el.closest(ancestor);
      if (target && (!visibleOnly || isVisible(target))) return target;
    }
  }
  return null;
}
"""


class PageMutationSource:
    """``MutationSource`` fed by a ``MutationObserver`` running in *page*."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self._hub = MutationHub()
        self._installed = False

    async def install(self) -> None:
        """Expose the notification binding and start observing.

        The observer is registered as an init script too, so it survives
        in-tab navigations.
        """
        if self._installed:
            return
        await self._page.expose_function(_BINDING_NAME, self._hub.notify)
        script = f"({_OBSERVER_JS})({json.dumps(_BINDING_NAME)})"
        await self._page.add_init_script(script)
        await self._page.evaluate(_OBSERVER_JS, _BINDING_NAME)
        self._installed = True
        logger.debug("Mutation observer installed")

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        return self._hub.subscribe(callback)


class AutomationPage:
    """The page a playbook runs against.

    Args:
        page: Playwright async ``Page`` already showing the target site.
        action_pause_ms: Fixed pause after scrolling to an element and
            after typing into one.
    """

    def __init__(self, page: Page, *, action_pause_ms: int = 500) -> None:
        self._page = page
        self._action_pause_ms = action_pause_ms
        self._mutations = PageMutationSource(page)

    @property
    def url(self) -> str:
        return self._page.url

    async def start(self) -> None:
        """Begin watching the page for tree mutations."""
        await self._mutations.install()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def find(self, query: ElementQuery) -> ElementHandle | None:
        """Return the first element matching *query* right now, or ``None``."""
        handle = await self._page.evaluate_handle(
            _FIND_JS,
            [query.kind.value, query.selector, query.text, query.closest, query.visible_only],
        )
        element = handle.as_element()
        if element is None:
            await handle.dispose()
        return element

    async def wait_for(self, query: ElementQuery, timeout_ms: int) -> ElementHandle:
        """Wait until an element matching *query* is present.

        Raises:
            WaitTimeoutError: If nothing matches within *timeout_ms*.
        """
        logger.debug("Waiting for %s (%dms)", query.describe(), timeout_ms)
        return await wait_for_condition(
            lambda: self.find(query),
            self._mutations,
            timeout_ms,
            query.describe(),
        )

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    async def click(self, element: ElementHandle) -> None:
        """Scroll *element* into view, pause, then click it."""
        await element.scroll_into_view_if_needed()
        await self.pause(self._action_pause_ms)
        await element.click()
        logger.debug("Clicked element")

    async def fill(self, element: ElementHandle, text: str) -> None:
        """Focus *element*, replace its value with *text* and fire ``change``."""
        await element.focus()
        await element.fill(text)
        await element.dispatch_event("change")
        logger.debug("Input text: %s", text[:60])
        await self.pause(self._action_pause_ms)

    async def pause(self, ms: int) -> None:
        """Fixed delay between steps."""
        if ms > 0:
            await asyncio.sleep(ms / 1000)
