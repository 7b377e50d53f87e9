"""
User-Facing Notifications

Every store operation ends in a short toast: green for success, red
("destructive") for failure. The stores never talk to the UI directly;
they push notifications here and the UI decides how to render them
(``st.toast`` in the Streamlit app, a plain list in tests).
"""

from enum import Enum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel


logger = structlog.get_logger(__name__)


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """One toast."""

    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE


class Notifier:
    """
    Collects notifications and forwards them to an optional UI sink.

    ``history`` keeps everything emitted so far, newest last.
    """

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None):
        self._sink = sink
        self.history: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.history.append(notification)
        logger.debug(
            "notification",
            title=notification.title,
            variant=notification.variant.value,
        )
        if self._sink is not None:
            self._sink(notification)

    def success(self, description: str, title: str = "Success") -> None:
        self.notify(Notification(title=title, description=description))

    def error(self, description: str, title: str = "Error") -> None:
        self.notify(Notification(
            title=title,
            description=description,
            variant=NotificationVariant.DESTRUCTIVE,
        ))

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def clear(self) -> None:
        self.history.clear()
