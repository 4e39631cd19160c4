"""Automation — the background coordinator and the page-level driver."""

from nbpilot.automation.coordinator import Coordinator
from nbpilot.automation.driver import PageAutomationDriver

__all__ = ["Coordinator", "PageAutomationDriver"]
