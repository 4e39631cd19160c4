"""Playbook matcher — pick the playbook for the opened target URL.

Playbooks are checked in registration order and the first enabled one
whose ``url_pattern`` matches wins.
"""

from __future__ import annotations

import logging
import re

from nbpilot.exceptions import PlaybookNotFoundError
from nbpilot.playbook.models import Playbook

logger = logging.getLogger(__name__)


class PlaybookMatcher:
    """Registry of playbooks keyed by their target URL pattern."""

    def __init__(self, playbooks: list[Playbook] | None = None) -> None:
        self._playbooks: list[Playbook] = []
        self._compiled: dict[str, re.Pattern[str]] = {}
        for pb in playbooks or []:
            self.register(pb)

    def register(self, playbook: Playbook) -> None:
        """Add *playbook* to the registry (a repeated ID replaces the old entry)."""
        self._playbooks = [pb for pb in self._playbooks if pb.playbook_id != playbook.playbook_id]
        self._playbooks.append(playbook)
        self._compiled[playbook.playbook_id] = re.compile(playbook.url_pattern, re.IGNORECASE)

    def match(self, target_url: str) -> Playbook | None:
        """Return the first enabled playbook whose pattern matches, or ``None``."""
        for pb in self._playbooks:
            if not pb.enabled:
                continue
            if self._compiled[pb.playbook_id].search(target_url):
                logger.info("Playbook match: %s → %s", target_url, pb.playbook_id)
                return pb
        return None

    def require(self, target_url: str) -> Playbook:
        """Like ``match`` but raise when nothing matches.

        Raises:
            PlaybookNotFoundError: If no enabled playbook matches.
        """
        pb = self.match(target_url)
        if pb is None:
            raise PlaybookNotFoundError(target_url)
        return pb

    def get(self, playbook_id: str) -> Playbook | None:
        """Retrieve a playbook by ID."""
        return next((pb for pb in self._playbooks if pb.playbook_id == playbook_id), None)

    @property
    def count(self) -> int:
        return len(self._playbooks)

    @property
    def playbooks(self) -> list[Playbook]:
        """Return a copy of all registered playbooks."""
        return list(self._playbooks)
