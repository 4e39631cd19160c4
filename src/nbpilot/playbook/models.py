"""Playbook data models — the fixed step sequence run against the target page.

A step locates an element through an ordered chain of ``ElementQuery``
locators (the primary first, then fallbacks), acts on it, and then
pauses for ``settle_ms``. Template variables (``{source.url}``,
``{audio.language}``, ...) in step values and query texts are resolved at
run time.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from nbpilot.models.query import ElementQuery


class PlaybookStepType(str, Enum):
    """Action types a playbook step can perform."""

    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    WAIT = "wait"


class StepOutcome(str, Enum):
    """How a single step ended."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class PlaybookStep(BaseModel):
    """Single deterministic step in a playbook."""

    action: PlaybookStepType
    locators: list[ElementQuery] = Field(
        default_factory=list,
        description="Ordered fallback chain; later locators are tried only when earlier ones time out.",
    )
    option: ElementQuery | None = Field(
        default=None,
        description="For SELECT: the option to click once the control is open.",
    )
    value: str = ""
    description: str = ""

    timeout_ms: int | None = Field(
        default=None,
        ge=0,
        description="Wait limit per locator. Defaults to the automation setting.",
    )
    settle_ms: int = Field(default=0, ge=0, description="Fixed delay after the action.")
    optional: bool = Field(
        default=False,
        description="If the step fails, log it and carry on with the next step.",
    )
    skip_if: ElementQuery | None = Field(
        default=None,
        description="Skip the step when this element is present.",
    )
    skip_if_timeout_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_action_fields(self) -> "PlaybookStep":
        """Ensure each action has what it needs."""
        if self.action in (PlaybookStepType.CLICK, PlaybookStepType.TYPE, PlaybookStepType.SELECT):
            if not self.locators:
                raise ValueError(f"{self.action.value} steps need at least one locator")
        if self.action == PlaybookStepType.SELECT and self.option is None:
            raise ValueError("select steps need an 'option' query")
        if self.action == PlaybookStepType.WAIT:
            try:
                int(self.value or "0")
            except ValueError as e:
                raise ValueError("wait steps take a duration in milliseconds as 'value'") from e
        return self

    def label(self, index: int) -> str:
        return self.description or f"step {index + 1} ({self.action.value})"


class Playbook(BaseModel):
    """Complete scripted flow for the target site.

    ``url_pattern`` is matched against the opened target URL to pick the
    playbook to run.
    """

    playbook_id: str = Field(
        ...,
        description="Unique identifier (e.g., 'notebooklm_audio_overview').",
        pattern=r"^[a-z0-9_]+$",
    )
    url_pattern: str = Field(..., description="Regex pattern to match against the target URL.")
    description: str = ""
    steps: list[PlaybookStep] = Field(
        ...,
        min_length=1,
        description="Ordered steps to execute. Must have at least one.",
    )

    # Metadata
    author: str = ""
    version: str = "1.0"
    tags: list[str] = Field(default_factory=list)
    enabled: bool = True

    @field_validator("url_pattern")
    @classmethod
    def validate_url_pattern(cls, v: str) -> str:
        """Validate that url_pattern is a compilable regex."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex in url_pattern: {e}") from e
        return v


class PlaybookStepResult(BaseModel):
    """Outcome of executing a single playbook step."""

    step_index: int
    action: PlaybookStepType
    description: str = ""
    outcome: StepOutcome
    locator_used: int | None = Field(
        default=None,
        description="Index into the step's locators of the one that matched.",
    )
    error: str = ""
    duration_sec: float = 0.0

    @property
    def success(self) -> bool:
        return self.outcome != StepOutcome.FAILED


class PlaybookResult(BaseModel):
    """Structured outcome of a full playbook execution."""

    playbook_id: str
    url: str
    success: bool
    completed_steps: int = 0
    total_steps: int = 0
    step_results: list[PlaybookStepResult] = Field(default_factory=list)
    error: str = ""
    duration_sec: float = 0.0
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
