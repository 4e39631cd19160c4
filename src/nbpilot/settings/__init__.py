"""Settings package — pydantic-settings configuration for nbpilot."""

from nbpilot.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
