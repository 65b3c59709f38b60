# app/services/interval_overlap.py
"""
Half-open time window arithmetic used by vehicle scheduling.

A window is [start, end): a trip ending at 10:00 and another starting at 10:00
do not conflict. Timestamps are stored and compared as naive UTC; aware input
is converted with as_utc() first.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC. Naive input is taken to be UTC already."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True iff [a_start, a_end) and [b_start, b_end) share at least one instant."""
    a_start, a_end, b_start, b_end = (as_utc(m) for m in (a_start, a_end, b_start, b_end))
    return a_start < b_end and b_start < a_end


def maintenance_instant(maintenance_date: date) -> datetime:
    """Maintenance dates carry no time of day; the vehicle is taken at midnight UTC."""
    if isinstance(maintenance_date, datetime):
        return as_utc(maintenance_date)
    return datetime.combine(maintenance_date, time.min)


def blocked_by_maintenance(
    departure: datetime,
    arrival: datetime,
    maintenance_date: Optional[date],
    blackout_hours: int = 0,
) -> bool:
    """
    Whether a maintenance booking makes the vehicle ineligible for [departure, arrival).

    With blackout_hours == 0 only the maintenance instant is known. The window is
    blocked when that instant falls strictly inside it; a window that starts at or
    after the instant, or ends at or before it, stays eligible.

    With blackout_hours > 0 the maintenance occupies [midnight, midnight + hours)
    and the ordinary overlap rule applies.
    """
    if maintenance_date is None:
        return False
    departure, arrival = as_utc(departure), as_utc(arrival)
    start = maintenance_instant(maintenance_date)
    if blackout_hours > 0:
        return overlaps(departure, arrival, start, start + timedelta(hours=blackout_hours))
    return departure < start < arrival
