"""User-facing notifications (the toast / alert channel).

Operations never raise request failures at the caller; they report them
here and return a result object instead.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class ToastType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


_LOG_LEVELS = {
    ToastType.SUCCESS: logging.INFO,
    ToastType.INFO: logging.INFO,
    ToastType.WARNING: logging.WARNING,
    ToastType.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    message: str
    type: ToastType = ToastType.INFO
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Collects notifications and forwards them to subscribed presenters."""

    def __init__(self):
        self.history: List[Notification] = []
        self._subscribers: List[Callable[[Notification], None]] = []

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        self._subscribers.append(callback)

    def show(self, message: str, type: ToastType = ToastType.INFO) -> Notification:
        notification = Notification(message=message, type=type)
        self.history.append(notification)
        logger.log(_LOG_LEVELS[type], f"[{type.value}] {message}")
        for callback in self._subscribers:
            callback(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, ToastType.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, ToastType.ERROR)

    def warning(self, message: str) -> Notification:
        return self.show(message, ToastType.WARNING)

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None
