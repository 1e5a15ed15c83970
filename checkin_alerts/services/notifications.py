"""
Notification delivery for escalation alerts.

Delivery is fire-and-forget: dispatchers return nothing, and callers never
wait on or retry a delivery.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import structlog
from rich.console import Console
from rich.panel import Panel

logger = structlog.get_logger(__name__)


class NotificationDispatcher(Protocol):
    """Delivers a title/body alert to clinical staff."""

    def send(self, title: str, body: str) -> None:
        ...


@dataclass
class SentNotification:
    """A delivered alert, kept for inspection."""

    title: str
    body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class LoggingNotificationDispatcher:
    """
    Emits alerts as structured log events (for headless deployments).

    Bodies carry the subject's display name, so only the title is logged.
    """

    def __init__(self) -> None:
        self.logger = logger.bind(component="logging_dispatcher")

    def send(self, title: str, body: str) -> None:
        self.logger.warning("escalation_alert", title=title, body_chars=len(body))


class ConsoleNotificationDispatcher:
    """Development dispatcher that renders alerts on the terminal."""

    def __init__(self, console: Console | None = None, history_size: int = 100) -> None:
        self.console = console or Console()
        self.history: deque[SentNotification] = deque(maxlen=history_size)

    def send(self, title: str, body: str) -> None:
        notification = SentNotification(title=title, body=body)
        self.history.append(notification)
        self.console.print(
            Panel(
                body,
                title=f"🚨 {title}",
                subtitle=notification.sent_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
                border_style="red",
            )
        )
