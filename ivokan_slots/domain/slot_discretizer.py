"""
Turns effective availability windows into discrete, bookable lesson slots.

The current instant is always passed in by the caller; nothing here reads the
system clock.
"""

from datetime import datetime
from typing import Dict, Iterable, List

import pendulum
from pendulum import DateTime

from .exceptions import InvalidParameterError
from .models import BookableSlot, EffectiveDayAvailability, TimeWindow, validate_timezone

# Defaults of the tutor profile when the tutor has not configured them
DEFAULT_BREAK_MINUTES = 15
DEFAULT_MINIMUM_NOTICE_MINUTES = 120

PERIOD_ORDER = ("morning", "afternoon", "evening")


class SlotDiscretizer:
    """
    Generates fixed-length slots separated by a break inside each window.

    Algorithm, per window:
    1. Start the cursor at the window start
    2. While a full lesson still fits before the window end, propose
       [cursor, cursor + duration]
    3. Keep the proposal only if its start exists in the tutor's timezone
       and is at or after now + minimum notice
    4. Advance the cursor by duration + break, whether or not it was kept
    """

    def __init__(
        self,
        lesson_duration_minutes: int,
        break_minutes: int = DEFAULT_BREAK_MINUTES,
        minimum_notice_minutes: int = DEFAULT_MINIMUM_NOTICE_MINUTES,
        timezone: str = "UTC",
    ):
        _require_int("lesson_duration_minutes", lesson_duration_minutes)
        _require_int("break_minutes", break_minutes)
        _require_int("minimum_notice_minutes", minimum_notice_minutes)

        if lesson_duration_minutes <= 0:
            raise InvalidParameterError(
                f"lesson_duration_minutes must be greater than zero, got {lesson_duration_minutes}"
            )
        if break_minutes < 0:
            raise InvalidParameterError(f"break_minutes must not be negative, got {break_minutes}")
        if minimum_notice_minutes < 0:
            raise InvalidParameterError(
                f"minimum_notice_minutes must not be negative, got {minimum_notice_minutes}"
            )

        self.lesson_duration_minutes = lesson_duration_minutes
        self.break_minutes = break_minutes
        self.minimum_notice_minutes = minimum_notice_minutes
        self.timezone = validate_timezone(timezone)

    def generate_slots(
        self,
        effective_day: EffectiveDayAvailability,
        now: datetime,
    ) -> List[BookableSlot]:
        """
        Generate the bookable slots of one day.

        Args:
            effective_day: Effective availability of a single date
            now: Current instant; a naive value is read in the tutor's timezone

        Returns:
            Slots sorted ascending by start time (empty if nothing fits)
        """
        threshold = self._notice_threshold(now)
        slots: List[BookableSlot] = []

        for window in effective_day.available_windows:
            slots.extend(self._slots_in_window(effective_day, window, threshold))

        slots.sort(key=lambda s: (s.window.start, s.window.end))
        return slots

    def generate_slots_for_days(
        self,
        days: Iterable[EffectiveDayAvailability],
        now: datetime,
    ) -> List[BookableSlot]:
        """Generate slots for several days as one list sorted by date then time."""
        slots: List[BookableSlot] = []
        for day in days:
            slots.extend(self.generate_slots(day, now))

        slots.sort(key=lambda s: (s.date, s.window.start))
        return slots

    def _slots_in_window(
        self,
        effective_day: EffectiveDayAvailability,
        window: TimeWindow,
        threshold: DateTime,
    ) -> List[BookableSlot]:
        duration = self.lesson_duration_minutes
        step = duration + self.break_minutes
        slots: List[BookableSlot] = []

        cursor = window.start
        while cursor + duration <= window.end:
            slot = BookableSlot(
                date=effective_day.date,
                window=TimeWindow(start=cursor, end=cursor + duration),
                duration_minutes=duration,
            )
            # Starts inside a DST gap have no instant of their own
            if slot.exists_in(self.timezone) and slot.start_instant(self.timezone) >= threshold:
                slots.append(slot)

            cursor += step

        return slots

    def _notice_threshold(self, now: datetime) -> DateTime:
        return _as_instant(now, self.timezone).add(minutes=self.minimum_notice_minutes)


def _require_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an integer number of minutes, got {value!r}")


def _as_instant(value: datetime, timezone: str) -> DateTime:
    if value.tzinfo is None:
        return pendulum.instance(value, tz=timezone)
    return pendulum.instance(value)


def generate_slots(
    effective_day: EffectiveDayAvailability,
    lesson_duration_minutes: int,
    break_minutes: int,
    minimum_notice_minutes: int,
    now: datetime,
    *,
    timezone: str = "UTC",
) -> List[BookableSlot]:
    """Functional entry point wrapping :class:`SlotDiscretizer`."""
    discretizer = SlotDiscretizer(
        lesson_duration_minutes=lesson_duration_minutes,
        break_minutes=break_minutes,
        minimum_notice_minutes=minimum_notice_minutes,
        timezone=timezone,
    )
    return discretizer.generate_slots(effective_day, now)


def meets_minimum_notice(
    slot_start: datetime,
    now: datetime,
    minimum_notice_minutes: int,
    timezone: str = "UTC",
) -> bool:
    """
    Check that ``slot_start`` is at least ``minimum_notice_minutes`` after ``now``.

    Naive datetimes are read in ``timezone``. This is the check a booking has
    to pass again right before it is persisted.
    """
    _require_int("minimum_notice_minutes", minimum_notice_minutes)
    if minimum_notice_minutes < 0:
        raise InvalidParameterError(
            f"minimum_notice_minutes must not be negative, got {minimum_notice_minutes}"
        )
    threshold = _as_instant(now, timezone).add(minutes=minimum_notice_minutes)
    return _as_instant(slot_start, timezone) >= threshold


def group_slots_by_period(slots: Iterable[BookableSlot]) -> Dict[str, List[BookableSlot]]:
    """
    Group slots into morning (<12h), afternoon (12-18h) and evening (>=18h).

    Empty groups are left out; group order is morning, afternoon, evening.
    """
    grouped: Dict[str, List[BookableSlot]] = {period: [] for period in PERIOD_ORDER}
    for slot in slots:
        grouped[slot.period].append(slot)

    return {period: items for period, items in grouped.items() if items}
