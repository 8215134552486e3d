"""Selection of the report a warranty is computed from.

Reports come from the reports API newest first. The warranty of a client's
device starts at the inspection date of its most recent completed report.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from .data_models import Report, WarrantyBasis
from .engine import compute_all


def parse_reports(raw_reports: Iterable[Mapping[str, Any]]) -> List[Report]:
    """Validate a list of raw report records, preserving their order."""
    return [Report.from_dict(raw) for raw in raw_reports]


def select_report(reports: Iterable[Report], report_id: Optional[str] = None) -> Optional[Report]:
    """Return the report the warranty should be computed from.

    A report explicitly requested by id wins, whatever its status. Otherwise,
    or when the id is not found, the first completed report is used. ``None``
    means there is no active warranty to show.
    """
    reports = list(reports)
    if report_id is not None:
        for report in reports:
            if report.id == str(report_id):
                return report
    for report in reports:
        if report.is_completed:
            return report
    return None


def basis_for_report(report: Report, now: Any) -> WarrantyBasis:
    return WarrantyBasis.create(report.inspection_date, now)


def count_active_warranties(reports: Iterable[Report], now: datetime) -> int:
    """Number of reports whose manufacturing warranty is still active."""
    count = 0
    for report in reports:
        schedule = compute_all(basis_for_report(report, now))
        if schedule.manufacturing.is_active:
            count += 1
    return count
