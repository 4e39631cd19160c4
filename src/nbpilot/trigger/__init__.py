"""Triggers — where a run's source URL comes from.

``url`` validates it, ``clipboard`` reads it from the system clipboard
and ``hotkey`` starts a run from a global keyboard shortcut.
"""

from nbpilot.trigger.url import validate_source_url

__all__ = ["validate_source_url"]
