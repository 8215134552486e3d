"""Core calculation engine for the warranty tracker.

This module classifies the warranty and maintenance periods of a device
relative to an evaluation instant. Periods are computed in configuration
order so that a chained period (the second maintenance cycle) is anchored on
the already computed end date of the period it follows. The engine never reads
the system clock: ``now`` always arrives through the ``WarrantyBasis``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, Optional

from .data_models import (
    PERIOD_DEFINITIONS,
    PERIOD_NAMES,
    START_ANCHOR,
    PeriodDefinition,
    PeriodState,
    PeriodStatus,
    WarrantyBasis,
    WarrantySchedule,
)
from .utils import add_days, ceil_days, floor_days


def compute_period(name: str, anchor: datetime, duration_days: int, now: datetime) -> PeriodStatus:
    """Classify a single window ``[anchor, anchor + duration_days)`` at ``now``.

    The start boundary is inclusive (``now == anchor`` is ``active``) and the
    end boundary is exclusive (``now == end_date`` is ``expired``).
    """
    if duration_days <= 0:
        raise ValueError(f"duration_days for period '{name}' must be positive; got {duration_days}")
    end_date = add_days(anchor, duration_days)

    if now < anchor:
        return PeriodStatus(
            name=name,
            duration_days=duration_days,
            start_date=anchor,
            end_date=end_date,
            state=PeriodState.NOT_STARTED,
            progress_percent=0.0,
            remaining_days=0,
            days_until_start=ceil_days(anchor - now),
        )

    if now >= end_date:
        return PeriodStatus(
            name=name,
            duration_days=duration_days,
            start_date=anchor,
            end_date=end_date,
            state=PeriodState.EXPIRED,
            progress_percent=100.0,
            remaining_days=0,
            days_until_start=0,
        )

    elapsed_days = floor_days(now - anchor)
    progress = min(100.0, (elapsed_days / duration_days) * 100)
    return PeriodStatus(
        name=name,
        duration_days=duration_days,
        start_date=anchor,
        end_date=end_date,
        state=PeriodState.ACTIVE,
        progress_percent=progress,
        remaining_days=max(0, ceil_days(end_date - now)),
        days_until_start=0,
    )


def compute_all(
    basis: WarrantyBasis,
    definitions: Optional[Iterable[PeriodDefinition]] = None,
) -> WarrantySchedule:
    """Compute the status of every configured period for ``basis``.

    Parameters
    ----------
    basis: WarrantyBasis
        Inspection date and evaluation instant, already validated.
    definitions: Iterable[PeriodDefinition], optional
        Period configuration in computation order. Defaults to
        ``PERIOD_DEFINITIONS``. A period anchored on another one must come
        after it.

    Returns
    -------
    WarrantySchedule
        One ``PeriodStatus`` per named period.

    Raises
    ------
    ValueError
        If the configuration is inconsistent: unknown or forward anchors,
        duplicate periods, or a table that does not cover all four periods.
    """
    if not isinstance(basis, WarrantyBasis):
        raise TypeError(f"basis must be a WarrantyBasis; got {type(basis).__name__}")
    if definitions is None:
        definitions = PERIOD_DEFINITIONS

    computed: Dict[str, PeriodStatus] = {}
    for definition in definitions:
        if definition.name in computed:
            raise ValueError(f"Period '{definition.name}' is defined more than once")
        if definition.anchor == START_ANCHOR:
            anchor = basis.start_date
        elif definition.anchor in computed:
            anchor = computed[definition.anchor].end_date
        else:
            raise ValueError(
                f"Period '{definition.name}' is anchored on '{definition.anchor}', "
                "which is not defined before it"
            )
        computed[definition.name] = compute_period(
            definition.name, anchor, definition.duration_days, basis.now
        )

    missing = [name for name in PERIOD_NAMES if name not in computed]
    if missing:
        raise ValueError(f"Period configuration is missing: {', '.join(missing)}")
    extra = [name for name in computed if name not in PERIOD_NAMES]
    if extra:
        raise ValueError(f"Unknown periods in configuration: {', '.join(extra)}")
    return WarrantySchedule(**computed)


def summarize(schedule: WarrantySchedule) -> Dict[str, object]:
    """Aggregate a schedule into JSON-ready metrics for display or export."""
    periods = list(schedule.periods())
    active = [p for p in periods if p.state == PeriodState.ACTIVE]
    next_expiring = min(active, key=lambda p: p.end_date) if active else None
    coverage_end = max(p.end_date for p in periods)
    return {
        "active_periods": len(active),
        "expired_periods": sum(1 for p in periods if p.state == PeriodState.EXPIRED),
        "not_started_periods": sum(1 for p in periods if p.state == PeriodState.NOT_STARTED),
        "next_expiring": next_expiring.name if next_expiring else None,
        "next_expiring_days": next_expiring.remaining_days if next_expiring else None,
        "coverage_end_date": coverage_end.date().isoformat(),
        "fully_expired": all(p.state == PeriodState.EXPIRED for p in periods),
    }
