"""Persistence layer for the maintenance alert log.

The log remembers which maintenance reminders were already sent so that a
client is never notified twice for the same cycle. It defaults to SQLite for
local development, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL) for shared deployments.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Set, Tuple

from sqlalchemy import Column, DateTime, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


Base = declarative_base()


class SentAlertModel(Base):
    __tablename__ = "warranty_alert_log"

    report_id = Column(String(64), primary_key=True)
    alert_key = Column(String(32), primary_key=True)
    sent_at = Column(DateTime, default=_utcnow, nullable=False)


class AlertLogStore:
    """Database-backed log of sent maintenance alerts."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def mark_sent(self, report_id: str, alert_key: str, sent_at: Optional[datetime] = None) -> datetime:
        """Record an alert as sent; returns the stored timestamp.

        Marking an alert twice keeps the first timestamp.
        """
        with self._session_factory() as session:
            row = session.get(SentAlertModel, (report_id, alert_key))
            if row is not None:
                logger.info("Alert %s/%s already marked sent at %s", report_id, alert_key, row.sent_at)
                return row.sent_at
            row = SentAlertModel(report_id=report_id, alert_key=alert_key, sent_at=sent_at or _utcnow())
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                # another writer recorded the same alert first
                session.rollback()
                stored = session.get(SentAlertModel, (report_id, alert_key))
                if stored is None:
                    raise
                logger.info("Alert %s/%s was marked sent concurrently at %s", report_id, alert_key, stored.sent_at)
                return stored.sent_at
            logger.info("Marked alert %s/%s as sent", report_id, alert_key)
            return row.sent_at

    def is_sent(self, report_id: str, alert_key: str) -> bool:
        with self._session_factory() as session:
            return session.get(SentAlertModel, (report_id, alert_key)) is not None

    def sent_keys(self, report_ids: Iterable[str]) -> Set[Tuple[str, str]]:
        """Return the ``(report_id, alert_key)`` pairs already sent for ``report_ids``."""
        ids = list(report_ids)
        if not ids:
            return set()
        with self._session_factory() as session:
            rows = session.execute(
                select(SentAlertModel).where(SentAlertModel.report_id.in_(ids))
            ).scalars()
            return {(row.report_id, row.alert_key) for row in rows}

    def clear(self, report_id: str) -> None:
        with self._session_factory() as session:
            session.execute(
                SentAlertModel.__table__.delete().where(SentAlertModel.report_id == report_id)
            )
            session.commit()


def create_store_from_env(url: str | None) -> AlertLogStore:
    return AlertLogStore(url or "sqlite:///warranty_alerts.sqlite3")
