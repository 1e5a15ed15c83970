"""
Core services for check-in analysis.

This package contains trend computation, escalation detection and alerting,
notification throttling and the staff digest.
"""

from .digest import AlertsDigest, AlertsDigestBuilder, DigestEntry
from .escalation import (
    AlertMessage,
    Detection,
    EscalationDetector,
    EscalationOutcome,
    EscalationService,
    notification_message,
)
from .history import HistoryFilter, HistorySource, Result, SubjectDirectory
from .notifications import (
    ConsoleNotificationDispatcher,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
)
from .throttle import CooldownStore, InMemoryCooldownStore, NotificationThrottle
from .trends import TextCategorizer, TrendComputer

__all__ = [
    "AlertMessage",
    "AlertsDigest",
    "AlertsDigestBuilder",
    "ConsoleNotificationDispatcher",
    "CooldownStore",
    "Detection",
    "DigestEntry",
    "EscalationDetector",
    "EscalationOutcome",
    "EscalationService",
    "HistoryFilter",
    "HistorySource",
    "InMemoryCooldownStore",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "NotificationThrottle",
    "Result",
    "SubjectDirectory",
    "TextCategorizer",
    "TrendComputer",
    "notification_message",
]
