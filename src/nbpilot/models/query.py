"""Element locators used by playbook steps.

A query is either a CSS selector (``css``) or a tag selector plus a
substring that must appear in the element's text content or its
``aria-label`` (``text``). Either kind may name ancestor selectors in
``closest``: the element returned is then the nearest ancestor matching
the first selector that has one, e.g. the ``button`` around an icon.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class QueryKind(str, Enum):
    """How a query matches elements."""

    CSS = "css"
    TEXT = "text"


class ElementQuery(BaseModel):
    """Single way of locating an element on the page."""

    kind: QueryKind = QueryKind.CSS
    selector: str = Field(..., min_length=1)
    text: str = ""
    closest: list[str] = Field(default_factory=list)
    visible_only: bool = True
    timeout_ms: int | None = Field(
        default=None,
        ge=0,
        description="Wait limit for this locator alone. Defaults to the step's limit.",
    )

    @model_validator(mode="after")
    def _text_required_for_text_queries(self) -> "ElementQuery":
        if self.kind == QueryKind.TEXT and not self.text:
            raise ValueError("text queries need a non-empty 'text'")
        return self

    @classmethod
    def css(cls, selector: str, *, closest: list[str] | None = None) -> "ElementQuery":
        return cls(kind=QueryKind.CSS, selector=selector, closest=closest or [])

    @classmethod
    def by_text(cls, selector: str, text: str, *, closest: list[str] | None = None) -> "ElementQuery":
        return cls(kind=QueryKind.TEXT, selector=selector, text=text, closest=closest or [])

    def describe(self) -> str:
        """Short human-readable form for logs and error messages."""
        base = self.selector if self.kind == QueryKind.CSS else f'<{self.selector}> with text "{self.text}"'
        if self.closest:
            base += f" → closest({' | '.join(self.closest)})"
        return base
