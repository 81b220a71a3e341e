"""
StudentHub Notification Sink

Fire-and-forget success / error / warning toasts printed to the console.
The last toasts are kept so tests and the CLI can inspect what the user saw.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, List, Optional

from rich.console import Console

from studenthub.logging_config import get_logger

logger = get_logger(__name__)


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


TOAST_STYLES = {
    ToastLevel.SUCCESS: ("green", "✓"),
    ToastLevel.ERROR: ("red", "✗"),
    ToastLevel.WARNING: ("yellow", "!"),
    ToastLevel.INFO: ("cyan", "i"),
}


@dataclass
class Toast:
    level: ToastLevel
    message: str
    at: datetime = field(default_factory=datetime.now)


class Notifier:
    """
    Shows transient messages to the user.

    Usage:
        notifier = Notifier(console)
        notifier.success("Course created successfully!")
        notifier.error("Failed to load courses")
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        quiet: bool = False,
        history_size: int = 50,
        bell_on_error: bool = False,
    ):
        self.console = console or Console(stderr=True)
        self.quiet = quiet
        self.bell_on_error = bell_on_error
        self.history: Deque[Toast] = deque(maxlen=history_size)

    def notify(self, level: ToastLevel, message: str) -> Toast:
        toast = Toast(level=level, message=message)
        self.history.append(toast)
        logger.debug(f"Toast [{level.value}] {message}")

        if not self.quiet:
            color, icon = TOAST_STYLES[level]
            self.console.print(f"[{color}]{icon} {message}[/{color}]")
            if level == ToastLevel.ERROR and self.bell_on_error:
                self.console.bell()
        return toast

    def success(self, message: str) -> Toast:
        return self.notify(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self.notify(ToastLevel.ERROR, message)

    def warning(self, message: str) -> Toast:
        return self.notify(ToastLevel.WARNING, message)

    def info(self, message: str) -> Toast:
        return self.notify(ToastLevel.INFO, message)

    @property
    def last(self) -> Optional[Toast]:
        return self.history[-1] if self.history else None

    def messages(self, level: Optional[ToastLevel] = None) -> List[str]:
        return [t.message for t in self.history if level is None or t.level == level]

    def clear(self) -> None:
        self.history.clear()
