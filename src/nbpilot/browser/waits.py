"""Conditional waits over a changing document tree.

``wait_for_condition`` is the one reusable mechanism in nbpilot: given a
check that looks for a match in the current tree and a source of
tree-mutation notifications, it resolves with the first match or fails
once the deadline passes. The check runs immediately and then once per
notification, so nothing is polled while the tree is quiet.

The primitive knows nothing about Playwright. ``nbpilot.browser.dom``
supplies a ``MutationSource`` backed by an in-page ``MutationObserver``
and checks that query the page by selector or by visible text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

from nbpilot.exceptions import WaitTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


@runtime_checkable
class MutationSource(Protocol):
    """Anything that can notify subscribers when the tree changes."""

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register *callback*; return a function that removes it."""
        ...


class MutationHub:
    """List of pending subscriptions, notified together on each change.

    Used directly in tests and as the fan-out behind
    ``PageMutationSource``.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def notify(self) -> None:
        """Call every current subscriber once."""
        for callback in list(self._subscribers):
            callback()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


async def wait_for_condition(
    check: Callable[[], Awaitable[T | None]],
    source: MutationSource,
    timeout_ms: int,
    description: str = "condition",
) -> T:
    """Wait until *check* returns a non-``None`` value.

    The subscription is taken before the first check so a mutation that
    lands between the check and the subscribe call cannot be missed.
    Notifications arriving while a check is in flight coalesce into one
    re-check.

    Args:
        check: Async callable returning the match, or ``None`` if absent.
        source: Mutation notifications for the tree *check* inspects.
        timeout_ms: Deadline in milliseconds. ``0`` checks exactly once.
        description: Included in the timeout error message.

    Returns:
        The first non-``None`` value produced by *check*.

    Raises:
        WaitTimeoutError: If no match appears before the deadline.
    """
    changed = asyncio.Event()
    unsubscribe = source.subscribe(changed.set)
    try:
        found = await check()
        if found is not None:
            return found
        if timeout_ms <= 0:
            raise WaitTimeoutError(description, timeout_ms)

        async def _recheck_on_change() -> T:
            while True:
                await changed.wait()
                changed.clear()
                result = await check()
                if result is not None:
                    return result

        try:
            return await asyncio.wait_for(_recheck_on_change(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.debug("Timed out after %dms waiting for %s", timeout_ms, description)
            raise WaitTimeoutError(description, timeout_ms) from None
    finally:
        unsubscribe()
