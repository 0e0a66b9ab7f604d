"""
Totals and percentage change for visitor series.
"""
from collections.abc import Iterable, Mapping
from typing import Any

from .models import MetricChange, VisitorsPoint

SUMMED_FIELDS = ("visitors", "views", "sessions", "bounces")


def _count(point: VisitorsPoint | Mapping[str, Any], field: str) -> int | float:
    if isinstance(point, VisitorsPoint):
        value = getattr(point, field)
    else:
        value = point.get(field)
    return value or 0


def sum_series(series: Iterable[VisitorsPoint | Mapping[str, Any]]) -> VisitorsPoint:
    """Sum visitor buckets into period totals.

    Missing counts count as zero. bounce_rate and cr are not summable and
    are left at 0; derive them from the summed counts if needed.
    """
    totals = dict.fromkeys(SUMMED_FIELDS, 0)
    for point in series:
        for field in SUMMED_FIELDS:
            totals[field] += _count(point, field)
    return VisitorsPoint(**totals, bounce_rate=0, cr=0)


def pct_change(current: float, previous: float) -> float | None:
    """Fractional change from previous to current, None if previous is 0."""
    if previous == 0:
        return None
    return (current - previous) / previous


def metric_with_change(current: int, previous: int) -> MetricChange:
    """Create a MetricChange for a current/previous pair."""
    return MetricChange(
        current=current,
        previous=previous,
        change=pct_change(current, previous),
    )
