"""Data models for the warranty tracker.

This module defines dataclasses representing the entities used by the engine:
the static period configuration, the per-query basis (inspection date and
evaluation instant), the derived status of each period and the boundary view
of a repair report. All of them are frozen so that a computed result can be
handed to several presentation layers without risk of mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .utils import parse_date, to_datetime


class PeriodState:
    """Classification of a period relative to the evaluation instant."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    EXPIRED = "expired"


# Anchor value meaning "the inspection date of the basis".
START_ANCHOR = "start"


@dataclass(frozen=True)
class PeriodDefinition:
    """One row of the static period configuration.

    Attributes
    ----------
    name: str
        Period identifier (``manufacturing``, ``replacement``, ...).
    duration_days: int
        Length of the window in calendar days. Must be positive.
    anchor: str
        ``"start"`` for periods measured from the inspection date, otherwise
        the name of an earlier period whose end date starts this one.
    """

    name: str
    duration_days: int
    anchor: str = START_ANCHOR

    def __post_init__(self) -> None:
        if isinstance(self.duration_days, bool) or not isinstance(self.duration_days, int):
            raise ValueError(
                f"duration_days for period '{self.name}' must be an integer; got {self.duration_days!r}"
            )
        if self.duration_days <= 0:
            raise ValueError(
                f"duration_days for period '{self.name}' must be positive; got {self.duration_days}"
            )
        if self.anchor == self.name:
            raise ValueError(f"Period '{self.name}' cannot be anchored on itself")


PERIOD_NAMES: Tuple[str, ...] = ("manufacturing", "replacement", "maintenance1", "maintenance2")

PERIOD_DEFINITIONS: Tuple[PeriodDefinition, ...] = (
    PeriodDefinition("manufacturing", 180),
    PeriodDefinition("replacement", 14),
    PeriodDefinition("maintenance1", 180),
    # second maintenance cycle begins exactly when the first one ends
    PeriodDefinition("maintenance2", 180, anchor="maintenance1"),
)


@dataclass(frozen=True)
class WarrantyBasis:
    """Starting point for one evaluation: inspection date plus "now".

    Both fields must be ``datetime`` instances, either both naive or both
    timezone-aware; anything else fails at construction. Use :meth:`create` to
    build an instance from user or API values that may be plain dates.
    """

    start_date: datetime
    now: datetime

    def __post_init__(self) -> None:
        for field_name in ("start_date", "now"):
            value = getattr(self, field_name)
            if not isinstance(value, datetime):
                raise TypeError(
                    f"{field_name} must be a datetime; got {type(value).__name__} "
                    "(use WarrantyBasis.create for plain dates)"
                )
        if (self.start_date.tzinfo is None) != (self.now.tzinfo is None):
            raise ValueError("start_date and now must both be naive or both be timezone-aware")

    @classmethod
    def create(cls, start: Any, now: Any) -> "WarrantyBasis":
        return cls(start_date=to_datetime(start, "start_date"), now=to_datetime(now, "now"))


@dataclass(frozen=True)
class PeriodStatus:
    """Derived state of a single period. Recomputed on every evaluation."""

    name: str
    duration_days: int
    start_date: datetime
    end_date: datetime
    state: str
    progress_percent: float
    remaining_days: int
    days_until_start: int

    @property
    def is_active(self) -> bool:
        return self.state == PeriodState.ACTIVE

    @property
    def is_expired(self) -> bool:
        return self.state == PeriodState.EXPIRED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration_days": self.duration_days,
            "start_date": self.start_date.date().isoformat(),
            "end_date": self.end_date.date().isoformat(),
            "state": self.state,
            "progress_percent": self.progress_percent,
            "remaining_days": self.remaining_days,
            "days_until_start": self.days_until_start,
        }


@dataclass(frozen=True)
class WarrantySchedule:
    """The four period statuses computed for one basis."""

    manufacturing: PeriodStatus
    replacement: PeriodStatus
    maintenance1: PeriodStatus
    maintenance2: PeriodStatus

    def periods(self) -> Iterator[PeriodStatus]:
        for name in PERIOD_NAMES:
            yield getattr(self, name)

    def get(self, name: str) -> PeriodStatus:
        if name not in PERIOD_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {p.name: p.to_dict() for p in self.periods()}


@dataclass(frozen=True)
class Report:
    """Validated view of a repair report as returned by the reports API.

    Only the fields the tracker needs are kept. The raw API records are loosely
    typed, so :meth:`from_dict` is the one place they are parsed.
    """

    id: str
    inspection_date: datetime
    status: str = ""
    device_model: str = ""
    client_name: str = ""
    client_phone: Optional[str] = None
    serial_number: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Report":
        if not isinstance(raw, Mapping):
            raise ValueError(f"Report must be an object; got {type(raw).__name__}")
        report_id = raw.get("id")
        if report_id is None or str(report_id).strip() == "":
            raise ValueError("Report is missing an id")
        inspection = raw.get("inspection_date")
        if inspection is None or inspection == "":
            raise ValueError(f"Report {report_id} is missing an inspection_date")
        if isinstance(inspection, (date, datetime)):
            inspection_dt = to_datetime(inspection, "inspection_date")
        else:
            inspection_dt = parse_date(str(inspection))
        return cls(
            id=str(report_id),
            inspection_date=inspection_dt,
            status=str(raw.get("status") or ""),
            device_model=str(raw.get("device_model") or ""),
            client_name=str(raw.get("client_name") or ""),
            client_phone=raw.get("client_phone") or None,
            serial_number=raw.get("serial_number") or None,
        )
