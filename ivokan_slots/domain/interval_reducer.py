"""
Core logic for reducing weekly availability by dated unavailability.

Pure domain logic without any external dependencies (no storage, no clock,
no I/O).
"""

from datetime import date
from typing import Iterable, List, Sequence

from .exceptions import InvalidParameterError
from .models import (
    DateRange,
    EffectiveDayAvailability,
    FullDayUnavailability,
    PartialUnavailability,
    TimeWindow,
    UnavailabilityPeriod,
    WeeklyAvailabilityWindow,
    sunday_based_weekday,
)


class IntervalReducer:
    """
    Computes the effective availability windows of each date in a range.

    Algorithm, per date:
    1. Select the weekly windows recurring on that weekday
    2. Select the unavailability periods covering that date
    3. Any full-day period empties the day
    4. Otherwise subtract every partial period from each weekly window in turn
    5. Sort the surviving pieces by start time
    """

    def __init__(
        self,
        weekly_windows: Iterable[WeeklyAvailabilityWindow],
        unavailability_periods: Iterable[UnavailabilityPeriod],
    ):
        self.weekly_windows = _checked(weekly_windows, (WeeklyAvailabilityWindow,))
        self.unavailability_periods = _checked(
            unavailability_periods, (FullDayUnavailability, PartialUnavailability)
        )

    def compute_effective_availability(
        self,
        date_range: DateRange,
        merge_adjacent: bool = False,
    ) -> List[EffectiveDayAvailability]:
        """
        Resolve every date of ``date_range``.

        Args:
            date_range: Inclusive range of dates to resolve
            merge_adjacent: Coalesce overlapping or touching windows that come
                from different weekly windows. Off by default, so each weekly
                window's pieces are reported as-is.

        Returns:
            One EffectiveDayAvailability per date, in date order
        """
        return [
            self.effective_availability_for_day(day, merge_adjacent=merge_adjacent)
            for day in date_range.days()
        ]

    def effective_availability_for_day(
        self,
        day: date,
        merge_adjacent: bool = False,
    ) -> EffectiveDayAvailability:
        weekday = sunday_based_weekday(day)
        day_windows = [w.window for w in self.weekly_windows if w.day_of_week == weekday]
        day_periods = [p for p in self.unavailability_periods if p.covers(day)]

        if not day_windows or any(p.is_full_day for p in day_periods):
            return EffectiveDayAvailability(date=day, available_windows=())

        blocked = [p.window for p in day_periods]

        available: List[TimeWindow] = []
        for window in day_windows:
            available.extend(self._subtract_blocked_from_window(window, blocked))

        available.sort(key=lambda w: (w.start, w.end))

        if merge_adjacent:
            available = self._merge_adjacent_windows(available)

        return EffectiveDayAvailability(date=day, available_windows=tuple(available))

    def _subtract_blocked_from_window(
        self,
        window: TimeWindow,
        blocked: Sequence[TimeWindow],
    ) -> List[TimeWindow]:
        """
        Subtract blocked windows from one weekly window, one after the other.

        Each blocked window is applied to the pieces left over by the previous
        ones.

        Example:
        Window: 09:00 - 17:00
        Blocked: [10:00-11:00, 14:00-15:00]
        Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
        """
        pieces = [window]

        for block in blocked:
            pieces = [piece for current in pieces for piece in current.subtract(block)]
            if not pieces:
                break

        return pieces

    def _merge_adjacent_windows(
        self,
        windows: List[TimeWindow],
    ) -> List[TimeWindow]:
        """
        Merge overlapping or adjacent windows (input sorted by start).

        Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
        """
        if not windows:
            return []

        merged: List[TimeWindow] = [windows[0]]

        for current in windows[1:]:
            last = merged[-1]

            if current.start <= last.end:
                merged[-1] = TimeWindow(start=last.start, end=max(last.end, current.end))
            else:
                merged.append(current)

        return merged


def _checked(items, expected_types) -> tuple:
    result = tuple(items)
    for item in result:
        if not isinstance(item, expected_types):
            raise InvalidParameterError(
                f"Expected {' or '.join(t.__name__ for t in expected_types)}, "
                f"got {type(item).__name__}"
            )
    return result


def compute_effective_availability(
    weekly_windows: Iterable[WeeklyAvailabilityWindow],
    unavailability_periods: Iterable[UnavailabilityPeriod],
    date_range: DateRange,
    *,
    merge_adjacent: bool = False,
) -> List[EffectiveDayAvailability]:
    """Functional entry point wrapping :class:`IntervalReducer`."""
    reducer = IntervalReducer(weekly_windows, unavailability_periods)
    return reducer.compute_effective_availability(date_range, merge_adjacent=merge_adjacent)
