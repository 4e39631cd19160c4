"""nbpilot exception hierarchy."""

from __future__ import annotations


class NbPilotError(Exception):
    """Base exception for all nbpilot errors."""


class InvalidURLError(NbPilotError):
    """Raised when a source URL is empty, malformed, or not http/https."""


class ClipboardError(NbPilotError):
    """Raised when the system clipboard cannot be read."""


class UnknownMessageError(NbPilotError):
    """Raised when a message carries an unrecognised ``action`` tag."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Unknown message action: {action!r}")


class WaitTimeoutError(NbPilotError):
    """Raised when a waited-for element does not appear before the deadline.

    Attributes:
        description: Human-readable description of what was awaited.
        timeout_ms: The wait limit that elapsed.
    """

    def __init__(self, description: str, timeout_ms: int) -> None:
        self.description = description
        self.timeout_ms = timeout_ms
        super().__init__(f"Visible element not found within {timeout_ms}ms: {description}")


class StepFailedError(NbPilotError):
    """Raised when a required playbook step cannot be completed.

    Attributes:
        step_index: Zero-based index of the failing step.
        description: The step's description.
    """

    def __init__(self, step_index: int, description: str, cause: str) -> None:
        self.step_index = step_index
        self.description = description
        self.cause = cause
        label = description or f"step {step_index + 1}"
        super().__init__(f"{label} failed: {cause}")


class NavigationError(NbPilotError):
    """Raised when the target page cannot be opened."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not open {url}: {reason}")


class PlaybookNotFoundError(NbPilotError):
    """Raised when no enabled playbook matches the target URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No playbook matches {url}")
