"""Configuration loader for nbpilot using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (NBPILOT_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("NBPILOT_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "NBPILOT_ENV"
DEFAULT_ENV = "local"


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class TargetSettings(BaseSettings):
    """The web application being driven."""

    model_config = SettingsConfigDict(env_prefix="NBPILOT_TARGET__")

    url: str = "https://notebooklm.google.com/"
    settle_ms: int = Field(default=3000, ge=0)
    navigation_timeout_ms: int = Field(default=30_000, gt=0)


class BrowserSettings(BaseSettings):
    """Playwright browser settings."""

    model_config = SettingsConfigDict(env_prefix="NBPILOT_BROWSER__")

    headless: bool = False
    channel: str = ""  # "", "chrome", "msedge"
    user_data_dir: str = "data/browser-profile"
    slow_mo_ms: int = Field(default=0, ge=0)


class AutomationSettings(BaseSettings):
    """Step timing and playbook selection."""

    model_config = SettingsConfigDict(env_prefix="NBPILOT_AUTOMATION__")

    default_timeout_ms: int = Field(default=5000, ge=0)
    action_pause_ms: int = Field(default=500, ge=0)
    playbook_path: str = ""


class AudioSettings(BaseSettings):
    """Audio Overview customisation, matched against the target's UI labels."""

    model_config = SettingsConfigDict(env_prefix="NBPILOT_AUDIO__")

    format: str = "詳細"
    language: str = "日本語"
    length: str = "短め"
    focus_prompt: str = "日本語、短め、AIホストが焦点を当てるべきことに、サイトを要約して"


class TriggerSettings(BaseSettings):
    """Keyboard shortcut trigger."""

    model_config = SettingsConfigDict(env_prefix="NBPILOT_TRIGGER__")

    hotkey: str = "<ctrl>+<shift>+y"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root nbpilot settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="NBPILOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    target: TargetSettings = Field(default_factory=TargetSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    automation: AutomationSettings = Field(default_factory=AutomationSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    trigger: TriggerSettings = Field(default_factory=TriggerSettings)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        root = self.project_root
        if not Path(self.browser.user_data_dir).is_absolute():
            self.browser.user_data_dir = str(root / self.browser.user_data_dir)
        if self.automation.playbook_path and not Path(self.automation.playbook_path).is_absolute():
            self.automation.playbook_path = str(root / self.automation.playbook_path)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
