"""
Domain models for weekly availability, unavailability overrides and slots.

Times of day are plain integers counting minutes since midnight so that all
interval arithmetic stays in whole minutes. ``1440`` is accepted as the end of
a day ("24:00").
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Iterator, Optional, Tuple, Union

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidIntervalError, InvalidParameterError

MINUTES_PER_DAY = 24 * 60

TimeLike = Union[str, time, int]

# Period boundaries used when rendering slots (hour of day, exclusive upper bound)
MORNING_END_HOUR = 12
AFTERNOON_END_HOUR = 18


def parse_time_of_day(value: TimeLike) -> int:
    """
    Convert ``HH:MM`` / ``HH:MM:SS`` strings, ``datetime.time`` objects or
    minute counts into minutes since midnight.

    Raises:
        InvalidParameterError: If the value cannot be interpreted.
    """
    if isinstance(value, bool):
        raise InvalidParameterError(f"Not a time of day: {value!r}")

    if isinstance(value, int):
        minutes = value
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise InvalidParameterError(f"Not a time of day: {value!r}")
        hours, mins = int(parts[0]), int(parts[1])
        if mins >= 60 or (len(parts) == 3 and int(parts[2]) >= 60):
            raise InvalidParameterError(f"Not a time of day: {value!r}")
        minutes = hours * 60 + mins
    else:
        raise InvalidParameterError(f"Not a time of day: {value!r}")

    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise InvalidParameterError(
            f"Time of day must be between 00:00 and 24:00, got {value!r}"
        )
    return minutes


def format_time_of_day(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_date(value: Union[date, str]) -> Date:
    """Normalise a ``datetime.date`` or ISO date string to a pendulum ``Date``."""
    if isinstance(value, str):
        parsed = pendulum.parse(value)
        return pendulum.date(parsed.year, parsed.month, parsed.day)
    return pendulum.date(value.year, value.month, value.day)


def validate_timezone(name: str) -> str:
    """
    Check that ``name`` is a known IANA timezone identifier.

    Raises:
        InvalidParameterError: If pendulum cannot resolve the timezone.
    """
    try:
        pendulum.timezone(name)
    except Exception as exc:
        raise InvalidParameterError(f"Unknown timezone: {name!r}") from exc
    return name


def sunday_based_weekday(day: date) -> int:
    """Weekday number with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open wall-clock window ``[start, end)`` within a single day.

    Invariant: ``0 <= start < end <= 1440``.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start <= MINUTES_PER_DAY or not 0 <= self.end <= MINUTES_PER_DAY:
            raise InvalidIntervalError(
                f"Window {self.start}-{self.end} lies outside a single day"
            )
        if self.start >= self.end:
            raise InvalidIntervalError(
                f"Start time {format_time_of_day(self.start)} must be before "
                f"end time {format_time_of_day(self.end)}"
            )

    @classmethod
    def of(cls, start: TimeLike, end: TimeLike) -> "TimeWindow":
        """Build a window from ``HH:MM`` strings, ``time`` objects or minutes."""
        return cls(start=parse_time_of_day(start), end=parse_time_of_day(end))

    @property
    def start_time(self) -> str:
        return format_time_of_day(self.start)

    @property
    def end_time(self) -> str:
        return format_time_of_day(self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeWindow") -> bool:
        """Check if this window overlaps another; touching endpoints do not count."""
        return self.start < other.end and self.end > other.start

    def subtract(self, other: "TimeWindow") -> Tuple["TimeWindow", ...]:
        """
        Remove ``other`` from this window.

        Returns zero, one or two surviving windows. Zero-length remainders are
        dropped.
        """
        if not self.overlaps(other):
            return (self,)

        remaining = []
        if self.start < other.start:
            remaining.append(TimeWindow(start=self.start, end=other.start))
        if self.end > other.end:
            remaining.append(TimeWindow(start=other.end, end=self.end))
        return tuple(remaining)

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class WeeklyAvailabilityWindow:
    """A recurring window on one weekday (0=Sunday, 6=Saturday)."""
    day_of_week: int
    window: TimeWindow

    def __post_init__(self):
        if isinstance(self.day_of_week, bool) or self.day_of_week not in range(7):
            raise InvalidParameterError(
                f"day_of_week must be between 0 and 6, got {self.day_of_week!r}"
            )

    @classmethod
    def of(cls, day_of_week: int, start: TimeLike, end: TimeLike) -> "WeeklyAvailabilityWindow":
        return cls(day_of_week=day_of_week, window=TimeWindow.of(start, end))


@dataclass(frozen=True)
class _DatedPeriod:
    start_date: Date
    end_date: Date

    def __post_init__(self):
        object.__setattr__(self, "start_date", to_date(self.start_date))
        object.__setattr__(self, "end_date", to_date(self.end_date))
        if self.start_date > self.end_date:
            raise InvalidIntervalError(
                f"Start date {self.start_date} must not be after end date {self.end_date}"
            )

    def covers(self, day: date) -> bool:
        """Check whether ``day`` falls inside the inclusive date range."""
        return self.start_date <= day <= self.end_date

    def intersects(self, other: "_DatedPeriod") -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date


@dataclass(frozen=True)
class FullDayUnavailability(_DatedPeriod):
    """Removes every day in ``[start_date, end_date]`` completely."""

    is_full_day = True

    @classmethod
    def of(cls, start_date, end_date) -> "FullDayUnavailability":
        return cls(start_date=to_date(start_date), end_date=to_date(end_date))


@dataclass(frozen=True)
class PartialUnavailability(_DatedPeriod):
    """Removes ``window`` from every day in ``[start_date, end_date]``."""
    window: TimeWindow

    is_full_day = False

    @classmethod
    def of(cls, start_date, end_date, start: TimeLike, end: TimeLike) -> "PartialUnavailability":
        return cls(
            start_date=to_date(start_date),
            end_date=to_date(end_date),
            window=TimeWindow.of(start, end),
        )


UnavailabilityPeriod = Union[FullDayUnavailability, PartialUnavailability]


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""
    start: Date
    end: Date

    def __post_init__(self):
        object.__setattr__(self, "start", to_date(self.start))
        object.__setattr__(self, "end", to_date(self.end))
        if self.start > self.end:
            raise InvalidIntervalError(
                f"Start date {self.start} must not be after end date {self.end}"
            )

    @classmethod
    def of(cls, start, end) -> "DateRange":
        return cls(start=to_date(start), end=to_date(end))

    @classmethod
    def from_today(cls, today: date, days: int) -> "DateRange":
        """Range covering ``today`` and the following ``days`` days."""
        if days < 0:
            raise InvalidParameterError(f"days must not be negative, got {days}")
        start = to_date(today)
        return cls(start=start, end=start.add(days=days))

    def days(self) -> Iterator[Date]:
        current = self.start
        while current <= self.end:
            yield current
            current = current.add(days=1)

    def __len__(self) -> int:
        return self.end.toordinal() - self.start.toordinal() + 1


@dataclass(frozen=True)
class EffectiveDayAvailability:
    """Net bookable windows of one date, sorted ascending by start."""
    date: Date
    available_windows: Tuple[TimeWindow, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))

    @property
    def is_available(self) -> bool:
        return bool(self.available_windows)


@dataclass(frozen=True)
class BookableSlot:
    """
    A concrete lesson offer on a specific date, in the tutor's wall-clock time.
    """
    date: Date
    window: TimeWindow
    duration_minutes: int

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))

    @property
    def start_time(self) -> str:
        return self.window.start_time

    @property
    def end_time(self) -> str:
        return self.window.end_time

    @property
    def period(self) -> str:
        """``morning``, ``afternoon`` or ``evening`` depending on the start hour."""
        hour = self.window.start // 60
        if hour < MORNING_END_HOUR:
            return "morning"
        if hour < AFTERNOON_END_HOUR:
            return "afternoon"
        return "evening"

    def start_instant(self, timezone: str) -> DateTime:
        """Absolute start of the slot, reading the wall-clock time in ``timezone``."""
        return pendulum.datetime(
            self.date.year,
            self.date.month,
            self.date.day,
            self.window.start // 60,
            self.window.start % 60,
            tz=timezone,
        )

    def exists_in(self, timezone: str) -> bool:
        """
        Check that the start wall-clock time occurs on this date in ``timezone``.

        Times skipped by a daylight saving jump are moved forward by pendulum,
        so they no longer read as the slot's own start time.
        """
        start = self.start_instant(timezone)
        return (start.hour, start.minute) == divmod(self.window.start, 60)

    def end_instant(self, timezone: str) -> DateTime:
        return self.start_instant(timezone).add(minutes=self.duration_minutes)

    def in_timezone(self, source_timezone: str, target_timezone: str) -> Tuple[DateTime, DateTime]:
        """Start and end instants converted to another timezone (e.g. the student's)."""
        return (
            self.start_instant(source_timezone).in_timezone(target_timezone),
            self.end_instant(source_timezone).in_timezone(target_timezone),
        )

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD.MM.YYYY | HH:MM – HH:MM (N min)
        """
        day_str = self.date.format("dddd, DD.MM.YYYY")
        return f"{day_str} | {self.start_time} – {self.end_time} ({self.duration_minutes} min)"


@dataclass(frozen=True)
class TutorSettings:
    """
    Tutor-level booking preferences. ``None`` means "use the configured default".
    """
    timezone: Optional[str] = None
    break_minutes: Optional[int] = None
    minimum_notice_minutes: Optional[int] = None
