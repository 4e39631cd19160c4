"""Clipboard access for the manual and keyboard-shortcut triggers."""

from __future__ import annotations

import logging

import pyperclip

from nbpilot.exceptions import ClipboardError
from nbpilot.trigger.url import validate_source_url

logger = logging.getLogger(__name__)


def read_clipboard() -> str:
    """Return the current clipboard text (empty string when there is none).

    Raises:
        ClipboardError: If no clipboard mechanism is available.
    """
    try:
        text = pyperclip.paste()
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"Failed to read clipboard: {e}") from e
    return text or ""


def read_url_from_clipboard() -> str:
    """Read the clipboard and validate it as the source URL.

    Raises:
        ClipboardError: If the clipboard cannot be read.
        InvalidURLError: If the clipboard does not hold an http/https URL.
    """
    text = read_clipboard()
    logger.debug("Clipboard text: %s", text[:80])
    return validate_source_url(text)
