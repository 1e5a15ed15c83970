"""Tests for the production notification dispatchers."""

from rich.console import Console

from checkin_alerts.services.notifications import (
    ConsoleNotificationDispatcher,
    LoggingNotificationDispatcher,
)


def test_console_dispatcher_renders_and_keeps_history() -> None:
    console = Console(record=True, width=100)
    dispatcher = ConsoleNotificationDispatcher(console, history_size=2)

    dispatcher.send("High pain alert", "Alex reported pain 9/10.")
    dispatcher.send("Low mood alert", "Alex reported mood \"Sad\".")
    dispatcher.send("Pain trending up", "Alex's pain climbed.")

    output = console.export_text()
    assert "High pain alert" in output
    assert "Alex's pain climbed." in output
    assert [n.title for n in dispatcher.history] == ["Low mood alert", "Pain trending up"]


def test_logging_dispatcher_does_not_raise() -> None:
    LoggingNotificationDispatcher().send("High pain alert", "Alex reported pain 9/10.")
