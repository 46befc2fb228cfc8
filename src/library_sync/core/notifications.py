"""User-facing notification channel."""

import logging
from enum import Enum
from typing import List, Optional, Protocol, Tuple


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    """Receives messages meant for the person using the client."""

    def notify(self, message: str, severity: Severity) -> None: ...


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Default notifier used when no presentation layer is attached."""

    def __init__(self, logger_obj: Optional[logging.Logger] = None):
        self.logger = logger_obj or logging.getLogger(__name__)

    def notify(self, message: str, severity: Severity) -> None:
        self.logger.log(_LOG_LEVELS[severity], f"[{severity.value}] {message}")


class RecordingNotifier:
    """Keeps every notification in memory; handy for CLIs and tests."""

    def __init__(self):
        self.messages: List[Tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity) -> None:
        self.messages.append((message, severity))

    def of_severity(self, severity: Severity) -> List[str]:
        return [message for message, level in self.messages if level is severity]
