"""Message models for the trigger → coordinator → driver → display hops.

Each message carries an ``action`` tag. Triggers send ``startAutomation``
to the coordinator, the coordinator sends ``runAutomation`` to the page
driver, and the driver (or coordinator, on early failure) publishes a
single terminal ``statusUpdate``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel

from nbpilot.exceptions import UnknownMessageError


class MessageAction(str, Enum):
    """Message tags understood by the coordinator and the driver."""

    START_AUTOMATION = "startAutomation"
    RUN_AUTOMATION = "runAutomation"
    STATUS_UPDATE = "statusUpdate"


class StatusType(str, Enum):
    """Kind of a status update. Only SUCCESS and ERROR are terminal."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class StartAutomation(BaseModel):
    """Trigger → coordinator: start one run for ``url``."""

    action: Literal["startAutomation"] = "startAutomation"
    url: str


class RunAutomation(BaseModel):
    """Coordinator → driver: execute the playbook with ``url`` as the source."""

    action: Literal["runAutomation"] = "runAutomation"
    url: str


class StatusUpdate(BaseModel):
    """Driver/coordinator → display surface."""

    action: Literal["statusUpdate"] = "statusUpdate"
    status: str
    type: StatusType = StatusType.INFO

    @property
    def is_terminal(self) -> bool:
        """True for success and error reports."""
        return self.type in (StatusType.SUCCESS, StatusType.ERROR)

    @classmethod
    def success(cls, text: str) -> "StatusUpdate":
        return cls(status=text, type=StatusType.SUCCESS)

    @classmethod
    def error(cls, text: str) -> "StatusUpdate":
        return cls(status=text, type=StatusType.ERROR)


_MESSAGE_TYPES: dict[str, type[BaseModel]] = {
    MessageAction.START_AUTOMATION.value: StartAutomation,
    MessageAction.RUN_AUTOMATION.value: RunAutomation,
    MessageAction.STATUS_UPDATE.value: StatusUpdate,
}


def parse_message(data: dict[str, Any]) -> StartAutomation | RunAutomation | StatusUpdate:
    """Build the typed message for a raw dict, dispatching on ``action``.

    Raises:
        UnknownMessageError: If the tag is missing or not recognised.
        pydantic.ValidationError: If the payload does not fit the message type.
    """
    action = str(data.get("action", ""))
    model = _MESSAGE_TYPES.get(action)
    if model is None:
        raise UnknownMessageError(action)
    return model(**data)  # type: ignore[return-value]
