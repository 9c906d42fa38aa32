from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

"""Single current status message with its severity.

Exactly one status is shown at a time; showing a new one replaces the previous
message instead of appending to it.
"""

__all__ = [
    "Severity",
    "StatusMessage",
    "StatusChannel",
]

logger = logging.getLogger(__name__)


class Severity(Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    text: str
    severity: Severity


class StatusChannel:
    """Holds the current status line and mirrors each change to the log."""

    def __init__(self) -> None:
        self._current: StatusMessage | None = None

    @property
    def current(self) -> StatusMessage | None:
        return self._current

    def show(self, text: str, severity: Severity) -> StatusMessage:
        message = StatusMessage(text=text, severity=severity)
        self._current = message
        if severity is Severity.ERROR:
            logger.error(text)
        else:
            logger.info(text)
        return message

    def loading(self, text: str) -> StatusMessage:
        return self.show(text, Severity.LOADING)

    def success(self, text: str) -> StatusMessage:
        return self.show(text, Severity.SUCCESS)

    def error(self, text: str) -> StatusMessage:
        return self.show(text, Severity.ERROR)

    def clear(self) -> None:
        self._current = None
