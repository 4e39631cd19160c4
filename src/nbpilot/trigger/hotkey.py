"""Global keyboard shortcut trigger.

pynput runs its listener on a background thread; the callback passed to
``HotkeyListener`` is invoked on that thread, so callers that need the
event loop must hand work over with ``asyncio.run_coroutine_threadsafe``.
"""

from __future__ import annotations

import logging
from typing import Callable

from pynput import keyboard

logger = logging.getLogger(__name__)


class HotkeyListener:
    """Calls *on_trigger* each time *hotkey* is pressed.

    Args:
        hotkey: pynput hotkey string, e.g. ``"<ctrl>+<shift>+y"``.
        on_trigger: Zero-argument callback run on the listener thread.
    """

    def __init__(self, hotkey: str, on_trigger: Callable[[], None]) -> None:
        self._hotkey = hotkey
        self._on_trigger = on_trigger
        self._listener: keyboard.GlobalHotKeys | None = None

    def __enter__(self) -> "HotkeyListener":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def hotkey(self) -> str:
        return self._hotkey

    def start(self) -> None:
        """Begin listening (no-op if already started).

        Raises:
            ValueError: If the hotkey string cannot be parsed.
        """
        if self._listener is not None:
            return
        keyboard.HotKey.parse(self._hotkey)
        self._listener = keyboard.GlobalHotKeys({self._hotkey: self._fire})
        self._listener.start()
        logger.info("Listening for %s", self._hotkey)

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
            logger.info("Stopped listening for %s", self._hotkey)

    def _fire(self) -> None:
        logger.info("Shortcut %s pressed", self._hotkey)
        try:
            self._on_trigger()
        except Exception:
            logger.exception("Shortcut handler failed")
