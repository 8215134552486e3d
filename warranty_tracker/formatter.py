"""Output helpers for the warranty tracker.

This module provides simple functions to render period schedules, summaries
and maintenance alerts in a tabular text format using built-in printing and
string formatting.
"""

from __future__ import annotations

from typing import Dict, Iterable

from .alerts import WarrantyAlert
from .data_models import WarrantySchedule

STATE_LABELS = {
    "not_started": "Not started",
    "active": "Active",
    "expired": "Expired",
}


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of the warranty in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Active periods     : {summary['active_periods']}")
    print(f"Expired periods    : {summary['expired_periods']}")
    if summary.get("not_started_periods"):
        print(f"Not started        : {summary['not_started_periods']}")
    if summary.get("next_expiring"):
        print(f"Next to expire     : {summary['next_expiring']} ({summary['next_expiring_days']} days left)")
    print(f"Coverage ends      : {summary['coverage_end_date']}")
    print("-" * 72)


def print_schedule(schedule: WarrantySchedule) -> None:
    """Print the four periods as a simple table."""
    headers = ["Period", "State", "Progress", "Remaining", "StartsIn", "Start", "End"]
    print("\t".join(headers))
    for status in schedule.periods():
        row = [
            status.name,
            STATE_LABELS.get(status.state, status.state),
            f"{status.progress_percent:.0f}%",
            str(status.remaining_days),
            str(status.days_until_start),
            status.start_date.strftime("%Y-%m-%d"),
            status.end_date.strftime("%Y-%m-%d"),
        ]
        print("\t".join(row))


def print_alerts(alerts: Iterable[WarrantyAlert]) -> None:
    alerts = list(alerts)
    if not alerts:
        print("No maintenance alerts.")
        return
    print("\t".join(["Report", "Client", "Phone", "Device", "Type", "Ends", "DaysLeft", "Sent"]))
    for alert in alerts:
        print(
            "\t".join(
                [
                    alert.report_id,
                    alert.client_name or "-",
                    alert.client_phone or "-",
                    alert.device_model or "-",
                    alert.warranty_type,
                    alert.end_date.strftime("%Y-%m-%d"),
                    str(alert.days_remaining),
                    "Yes" if alert.is_sent else "No",
                ]
            )
        )
