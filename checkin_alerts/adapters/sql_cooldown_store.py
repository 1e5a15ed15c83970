"""
Durable cooldown store backed by SQLAlchemy.

One row per (subject, reason) pair; ``mark_notified`` upserts the row in its
own transaction so a restart never re-arms a pair that is still cooling.
Timestamps are stored as epoch seconds and returned as UTC datetimes.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy import Column, Float, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from checkin_alerts.config import DatabaseConfig
from checkin_alerts.domain.models import CooldownKey, CooldownRecord, EscalationReasonKind

logger = structlog.get_logger(__name__)

Base = declarative_base()


class CooldownRow(Base):
    __tablename__ = "cooldown_records"

    subject_id = Column(String(128), primary_key=True)
    reason = Column(String(32), primary_key=True)
    last_notified_at = Column(Float, nullable=False)

    def to_record(self) -> CooldownRecord:
        return CooldownRecord(
            subject_id=self.subject_id,
            reason=EscalationReasonKind(self.reason),
            last_notified_at=datetime.fromtimestamp(self.last_notified_at, tz=UTC),
        )


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(database_url, echo=echo)


class SqlCooldownStore:
    """CooldownStore over any SQLAlchemy database; creates its table on first use."""

    def __init__(self, config: DatabaseConfig | str | None = None) -> None:
        if isinstance(config, str):
            config = DatabaseConfig(url=config)
        self.config = config or DatabaseConfig()
        self.engine = create_store_engine(self.config.url, echo=self.config.echo)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        self.logger = logger.bind(component="sql_cooldown_store")

    def last_notified(self, key: CooldownKey) -> datetime | None:
        with self.session_factory() as session:
            row = session.get(CooldownRow, (key.subject_id, key.reason.value))
            if row is None:
                return None
            return datetime.fromtimestamp(row.last_notified_at, tz=UTC)

    def mark_notified(self, key: CooldownKey, at: datetime) -> None:
        with self.session_factory() as session, session.begin():
            session.merge(
                CooldownRow(
                    subject_id=key.subject_id,
                    reason=key.reason.value,
                    last_notified_at=at.timestamp(),
                )
            )
        self.logger.debug("cooldown_persisted", cooldown_key=key.storage_key)

    def records(self) -> list[CooldownRecord]:
        with self.session_factory() as session:
            return [row.to_record() for row in session.query(CooldownRow).all()]

    def close(self) -> None:
        self.engine.dispose()
