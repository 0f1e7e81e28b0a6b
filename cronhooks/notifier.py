from typing import Literal, Protocol

from loguru import logger

NotificationKind = Literal["success", "error", "warning", "info"]

_LEVELS = {
    "success": "SUCCESS",
    "error": "ERROR",
    "warning": "WARNING",
    "info": "INFO",
}


class Notifier(Protocol):
    """Where user-facing outcome messages go (toasts, chat, log...)."""

    def notify(self, message: str, kind: NotificationKind = "info") -> None: ...


class LogNotifier:
    def notify(self, message: str, kind: NotificationKind = "info") -> None:
        logger.log(_LEVELS.get(kind, "INFO"), "[notify] {}", message)
