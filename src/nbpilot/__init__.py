"""nbpilot — drive NotebookLM's UI to turn a web page into an Audio Overview."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("nbpilot")
except Exception:
    __version__ = "0.0.0"
