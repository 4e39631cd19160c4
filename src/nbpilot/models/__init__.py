"""Pydantic models exchanged between the trigger, coordinator and driver."""

from nbpilot.models.messages import (
    MessageAction,
    RunAutomation,
    StartAutomation,
    StatusType,
    StatusUpdate,
    parse_message,
)
from nbpilot.models.query import ElementQuery, QueryKind

__all__ = [
    "ElementQuery",
    "MessageAction",
    "QueryKind",
    "RunAutomation",
    "StartAutomation",
    "StatusType",
    "StatusUpdate",
    "parse_message",
]
