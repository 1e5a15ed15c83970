"""
End-to-end walkthrough of the check-in analysis pipeline.

This script demonstrates:
1. Configuration loading and validation
2. Trend computation over a seeded history
3. Escalation detection, alerting and cooldown suppression
4. Fail-open handling when history is unavailable
5. The at-risk / overdue staff digest

Run with: uv run python demo_system.py
"""

import asyncio
from datetime import UTC, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from checkin_alerts.adapters import InMemoryCheckInRepository, SqlCooldownStore
from checkin_alerts.config import get_config
from checkin_alerts.domain.models import CheckInRecord, Subject, latest_summary
from checkin_alerts.errors import HistoryUnavailable
from checkin_alerts.log import configure_logging
from checkin_alerts.services import (
    AlertsDigestBuilder,
    ConsoleNotificationDispatcher,
    EscalationService,
    HistoryFilter,
    InMemoryCooldownStore,
    NotificationThrottle,
    Result,
    TrendComputer,
)

console = Console()
NOW = datetime.now(UTC)


class OfflineHistorySource:
    """History source whose database is unreachable."""

    async def fetch_history(
        self, subject_id: str, history_filter: HistoryFilter
    ) -> Result[list[CheckInRecord], HistoryUnavailable]:
        return Result.err(HistoryUnavailable(subject_id, "connection refused"))


def seed_repository() -> InMemoryCheckInRepository:
    """Three subjects: a worsening one, a stable one, and one who stopped checking in."""
    repo = InMemoryCheckInRepository()
    repo.add_subject(Subject(id="p-100", name="Maria"))
    repo.add_subject(Subject(id="p-200", name="Dev"))
    repo.add_subject(Subject(id="p-300"))

    worsening = [
        (20, 1, "good", "okay", "felt fine"),
        (12, 2, "neutral", "okay", "some cramps after dialysis"),
        (6, 3, "neutral", "low", "cramps and a headache"),
        (2, 2, "neutral", "low", "tired, cramps"),
        (1, 4, None, "low", "dizzy and nauseous"),
    ]
    for days_ago, pain, mood, energy, symptoms in worsening:
        repo.add_record(
            CheckInRecord(
                subject_id="p-100",
                created_at=NOW - timedelta(days=days_ago),
                pain_level=pain,
                mood_bucket=mood,
                energy_bucket=energy,
                symptoms_text=symptoms,
                concerns_text="worried about my fluid limits",
            )
        )

    for days_ago in (5, 3, 1):
        repo.add_record(
            CheckInRecord(
                subject_id="p-200",
                created_at=NOW - timedelta(days=days_ago),
                pain_level=1,
                mood_bucket="good",
                energy_bucket="high",
            )
        )

    repo.add_record(
        CheckInRecord(subject_id="p-300", created_at=NOW - timedelta(days=9), pain_level=2)
    )
    return repo


async def demo_configuration() -> bool:
    """Load configuration and apply logging settings."""

    console.print(Panel("🔧 Configuration", style="blue"))

    try:
        config = get_config()
        configure_logging(config.logging)

        table = Table(title=f"Environment: {config.environment}")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("High pain threshold", str(config.escalation.high_pain_threshold))
        table.add_row("Cooldown", f"{config.escalation.notification_cooldown_hours}h")
        table.add_row("Trend window", f"{config.trends.window_days}d")
        table.add_row("Trend timezone", config.trends.timezone)
        table.add_row("Overdue after", f"{config.digest.overdue_days_threshold}d")
        table.add_row("Log format", config.logging.format)
        console.print(table)
        return True

    except Exception as e:
        console.print(f"❌ Configuration failed: {e}", style="red")
        return False


async def demo_trends(repo: InMemoryCheckInRepository) -> bool:
    """Compute and display trends for the worsening subject."""

    console.print(Panel("📈 Trend Computation", style="blue"))

    result = await TrendComputer(repo, clock=lambda: NOW).compute_trends("p-100")
    if result.is_err():
        console.print(f"❌ Trends unavailable: {result.unwrap_err()}", style="red")
        return False

    trends = result.unwrap()
    console.print(f"Records in window: {trends.total_records_in_window}")
    console.print(
        "Pain series: " + " → ".join(f"{p.value:.0f}" for p in trends.pain_series),
        style="yellow",
    )

    table = Table(title="Top symptom categories")
    table.add_column("Category", style="cyan")
    table.add_column("Mentions", style="magenta")
    table.add_column("Days", style="green")
    for category, count in trends.top_symptom_categories:
        days = len(trends.symptom_category_daily.get(category, []))
        table.add_row(category, str(count), str(days))
    console.print(table)

    console.print(f"Concerns: {trends.concern_category_totals}")

    history = await repo.fetch_history("p-100", HistoryFilter(limit=1))
    summary = latest_summary(history.unwrap())
    if summary is not None:
        console.print(f"Latest check-in: pain {summary.pain_level}, notes: {summary.symptoms_text}")
    return True


async def demo_escalation(repo: InMemoryCheckInRepository) -> bool:
    """Run new check-ins through the alerting workflow."""

    console.print(Panel("🚨 Escalation Workflow", style="blue"))

    config = get_config()
    store = SqlCooldownStore("sqlite://")
    dispatcher = ConsoleNotificationDispatcher(console)
    service = EscalationService(
        repo,
        repo,
        NotificationThrottle(store),
        dispatcher,
        config=config.escalation,
    )

    try:
        check_ins = [
            (
                "pain 7 after a rising week",
                CheckInRecord(
                    subject_id="p-100", created_at=NOW, pain_level=7, mood_bucket="neutral"
                ),
            ),
            (
                "stable subject",
                CheckInRecord(subject_id="p-200", created_at=NOW, pain_level=2, mood_bucket="good"),
            ),
            (
                "still rising an hour later",
                CheckInRecord(
                    subject_id="p-100", created_at=NOW + timedelta(hours=1), pain_level=6
                ),
            ),
        ]

        table = Table(title="Outcomes")
        table.add_column("Check-in", style="cyan")
        table.add_column("Status", style="white")
        table.add_column("Reason", style="magenta")

        for label, record in check_ins:
            repo.add_record(record)
            outcome = await service.handle_check_in(record.subject_id, record, at=record.created_at)
            table.add_row(label, outcome.status, outcome.reason.value if outcome.reason else "-")

        console.print(table)
        console.print(f"Alerts delivered: {len(dispatcher.history)}", style="green")
        console.print(f"Cooldown rows persisted: {len(store.records())}")
        return True

    finally:
        store.close()


async def demo_error_handling(repo: InMemoryCheckInRepository) -> bool:
    """History outages skip the evaluation instead of failing the check-in."""

    console.print(Panel("🛡️ Error Handling", style="blue"))

    service = EscalationService(
        OfflineHistorySource(),
        repo,
        NotificationThrottle(InMemoryCooldownStore()),
        ConsoleNotificationDispatcher(console),
    )
    record = CheckInRecord(subject_id="p-200", created_at=NOW, pain_level=10)
    outcome = await service.handle_check_in("p-200", record)

    trends = await TrendComputer(OfflineHistorySource()).compute_trends("p-200")

    console.print(f"Escalation outcome: {outcome.status} ({outcome.error})", style="yellow")
    console.print(f"Trend result is error: {trends.is_err()}", style="yellow")
    return outcome.status == "skipped" and trends.is_err()


async def demo_digest(repo: InMemoryCheckInRepository) -> bool:
    """Summarize who needs attention."""

    console.print(Panel("📋 Staff Digest", style="blue"))

    config = get_config()
    builder = AlertsDigestBuilder(
        repo,
        repo,
        config=config.digest,
        escalation_config=config.escalation,
        tz=config.trends.tzinfo,
        clock=lambda: NOW,
    )
    digest = await builder.build_digest()

    table = Table(title=digest.body_text(builder.config))
    table.add_column("Section", style="cyan")
    table.add_column("Subject", style="white")
    table.add_column("Detail", style="magenta")
    for entry in digest.at_risk:
        table.add_row("At-risk", entry.name, entry.detail)
    for entry in digest.overdue:
        table.add_row("Overdue", entry.name, entry.detail)
    console.print(table)
    return True


async def run_all_demos() -> None:
    """Run every demo step in order."""

    console.print(Panel("🩺 Check-in Alerts - System Walkthrough", style="bold blue"))

    repo = seed_repository()
    steps = [
        ("Configuration", demo_configuration),
        ("Trends", lambda: demo_trends(repo)),
        ("Escalation", lambda: demo_escalation(repo)),
        ("Error Handling", lambda: demo_error_handling(repo)),
        ("Digest", lambda: demo_digest(repo)),
    ]

    results = []
    for name, step in steps:
        console.print(f"\n{'=' * 60}")
        try:
            results.append((name, await step()))
        except Exception as e:
            console.print(f"❌ {name} failed with exception: {e}", style="red")
            results.append((name, False))

    console.print(f"\n{'=' * 60}")
    summary_table = Table(title="Walkthrough Summary")
    summary_table.add_column("Step", style="cyan")
    summary_table.add_column("Result", style="white")
    for name, ok in results:
        summary_table.add_row(name, "✅ OK" if ok else "❌ FAILED")
    console.print(summary_table)


if __name__ == "__main__":
    try:
        asyncio.run(run_all_demos())
    except KeyboardInterrupt:
        console.print("\n👋 Stopped by user", style="yellow")
