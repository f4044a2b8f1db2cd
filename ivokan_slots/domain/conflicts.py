"""
Overlap checks run before a tutor saves a new availability entry.
"""

from typing import Iterable, List

from .models import UnavailabilityPeriod, WeeklyAvailabilityWindow


def find_weekly_conflicts(
    candidate: WeeklyAvailabilityWindow,
    existing: Iterable[WeeklyAvailabilityWindow],
) -> List[WeeklyAvailabilityWindow]:
    """
    Return the existing weekly windows on the candidate's weekday that overlap it.

    Windows that merely touch (one ends when the other starts) do not conflict.
    An entry identical to the candidate is reported as a conflict.
    """
    return [
        window for window in existing
        if window.day_of_week == candidate.day_of_week
        and window.window.overlaps(candidate.window)
    ]


def find_unavailability_conflicts(
    candidate: UnavailabilityPeriod,
    existing: Iterable[UnavailabilityPeriod],
) -> List[UnavailabilityPeriod]:
    """Return the existing periods whose inclusive date range intersects the candidate's."""
    return [period for period in existing if period.intersects(candidate)]
