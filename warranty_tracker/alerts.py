"""Maintenance expiry alerts.

An alert is raised for a report when one of its maintenance cycles ends within
the alert window. The end dates come from the engine, so the alerts always
agree with what the client sees on the warranty tracker. Sending the reminder
itself is left to the notification service.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Collection, Dict, Iterable, List, Optional, Tuple

from .data_models import Report
from .engine import compute_all
from .reports import basis_for_report
from .utils import add_days, ceil_days

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
DEFAULT_URGENT_DAYS = 3

# maintenance period name -> key stored in the alert log
ALERT_KEYS: Dict[str, str] = {
    "maintenance1": "six_month",
    "maintenance2": "annual",
}


@dataclass
class WarrantyAlert:
    report_id: str
    client_name: str
    client_phone: Optional[str]
    device_model: str
    serial_number: Optional[str]
    warranty_type: str
    alert_key: str
    end_date: datetime
    days_remaining: int
    is_sent: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["end_date"] = self.end_date.date().isoformat()
        return data


def find_alerts(
    reports: Iterable[Report],
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    sent: Optional[Collection[Tuple[str, str]]] = None,
) -> List[WarrantyAlert]:
    """Return alerts for maintenance cycles ending in ``[now, now + window_days]``.

    ``sent`` holds the ``(report_id, alert_key)`` pairs already notified; the
    matching alerts are still returned but flagged with ``is_sent``. The result
    is sorted by ``days_remaining``, most urgent first.
    """
    if window_days < 0:
        raise ValueError(f"window_days must not be negative; got {window_days}")
    sent = sent or ()
    horizon = add_days(now, window_days)
    alerts: List[WarrantyAlert] = []
    for report in reports:
        schedule = compute_all(basis_for_report(report, now))
        for period_name, alert_key in ALERT_KEYS.items():
            end_date = schedule.get(period_name).end_date
            if not (now <= end_date <= horizon):
                continue
            alerts.append(
                WarrantyAlert(
                    report_id=report.id,
                    client_name=report.client_name,
                    client_phone=report.client_phone,
                    device_model=report.device_model,
                    serial_number=report.serial_number,
                    warranty_type=period_name,
                    alert_key=alert_key,
                    end_date=end_date,
                    days_remaining=ceil_days(end_date - now),
                    is_sent=(report.id, alert_key) in sent,
                )
            )
    alerts.sort(key=lambda a: a.days_remaining)
    logger.debug("Found %d maintenance alerts within %d days", len(alerts), window_days)
    return alerts


def urgent_alerts(alerts: Iterable[WarrantyAlert], threshold_days: int = DEFAULT_URGENT_DAYS) -> List[WarrantyAlert]:
    """Alerts due within ``threshold_days`` that have not been sent yet."""
    return [a for a in alerts if a.days_remaining <= threshold_days and not a.is_sent]
