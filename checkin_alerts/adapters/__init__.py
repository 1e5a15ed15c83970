"""Storage adapters for check-in history and cooldown state."""

from checkin_alerts.adapters.memory import InMemoryCheckInRepository
from checkin_alerts.adapters.sql_cooldown_store import SqlCooldownStore

__all__ = ["InMemoryCheckInRepository", "SqlCooldownStore"]
