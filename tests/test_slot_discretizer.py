"""
Tests for slot discretizer.
"""

from datetime import datetime

import pendulum
import pytest

from ivokan_slots.domain.exceptions import InvalidParameterError
from ivokan_slots.domain.interval_reducer import compute_effective_availability
from ivokan_slots.domain.models import (
    BookableSlot,
    DateRange,
    EffectiveDayAvailability,
    FullDayUnavailability,
    PartialUnavailability,
    TimeWindow,
    WeeklyAvailabilityWindow,
)
from ivokan_slots.domain.slot_discretizer import (
    SlotDiscretizer,
    generate_slots,
    group_slots_by_period,
    meets_minimum_notice,
)

TZ = "Europe/Paris"
MONDAY = "2024-11-25"
LONG_AGO = pendulum.datetime(2024, 1, 1, tz=TZ)


def day_with(*pairs) -> EffectiveDayAvailability:
    return EffectiveDayAvailability(
        date=pendulum.date(2024, 11, 25),
        available_windows=tuple(TimeWindow.of(start, end) for start, end in pairs),
    )


def times(slots):
    return [(s.start_time, s.end_time) for s in slots]


class TestSlotDiscretizer:
    """Tests for SlotDiscretizer."""

    def test_back_to_back_with_break(self):
        """Test slots with breaks inside a single window."""
        slots = generate_slots(day_with(("09:00", "12:00")), 50, 15, 0, LONG_AGO, timezone=TZ)

        assert times(slots) == [("09:00", "09:50"), ("10:05", "10:55"), ("11:10", "12:00")]
        assert all(s.duration_minutes == 50 for s in slots)
        assert all(s.date == pendulum.date(2024, 11, 25) for s in slots)

    def test_zero_break(self):
        """Test that a zero break yields back-to-back slots."""
        slots = generate_slots(day_with(("09:00", "10:30")), 30, 0, 0, LONG_AGO, timezone=TZ)

        assert times(slots) == [("09:00", "09:30"), ("09:30", "10:00"), ("10:00", "10:30")]

    def test_window_shorter_than_lesson(self):
        """Test that nothing fits in a window shorter than the lesson."""
        assert generate_slots(day_with(("09:00", "09:45")), 50, 15, 0, LONG_AGO, timezone=TZ) == []

    def test_empty_windows(self):
        """Test that no availability is an empty result, not an error."""
        assert generate_slots(day_with(), 50, 15, 0, LONG_AGO, timezone=TZ) == []

    def test_slot_until_midnight(self):
        """Test a slot ending exactly at 24:00."""
        slots = generate_slots(day_with(("23:00", "24:00")), 60, 0, 0, LONG_AGO, timezone=TZ)

        assert times(slots) == [("23:00", "24:00")]

    @pytest.mark.parametrize(
        "length, duration, break_minutes",
        [
            (180, 50, 15),
            (60, 60, 0),
            (59, 60, 0),
            (120, 30, 10),
            (125, 25, 5),
            (1440, 45, 15),
            (100, 45, 60),
        ],
    )
    def test_slot_count_formula(self, length, duration, break_minutes):
        """Test floor((L + b) / (d + b)) slots per window."""
        day = EffectiveDayAvailability(
            date=pendulum.date(2024, 11, 25),
            available_windows=(TimeWindow(start=0, end=length),),
        )

        slots = generate_slots(day, duration, break_minutes, 0, LONG_AGO, timezone=TZ)

        expected = (length + break_minutes) // (duration + break_minutes) if length >= duration else 0
        assert len(slots) == expected

    def test_cursor_resets_per_window(self):
        """Test each window is discretized from its own start."""
        slots = generate_slots(
            day_with(("09:00", "10:00"), ("10:30", "12:00")), 50, 15, 0, LONG_AGO, timezone=TZ
        )

        assert times(slots) == [("09:00", "09:50"), ("10:30", "11:20")]

    def test_output_sorted_across_windows(self):
        """Test that unsorted or overlapping windows still give sorted output."""
        slots = generate_slots(
            day_with(("14:00", "15:00"), ("09:00", "10:00"), ("09:30", "10:30")),
            60, 0, 0, LONG_AGO, timezone=TZ,
        )

        assert times(slots) == [("09:00", "10:00"), ("09:30", "10:30"), ("14:00", "15:00")]

    def test_minimum_notice(self):
        """Test that slots inside the notice period are dropped without reflowing."""
        now = pendulum.datetime(2024, 11, 25, 8, 30, tz=TZ)

        slots = generate_slots(day_with(("09:00", "12:00")), 50, 15, 120, now, timezone=TZ)

        assert times(slots) == [("11:10", "12:00")]

    def test_minimum_notice_boundary(self):
        """Test that a slot starting exactly at now + notice is included."""
        day = day_with(("09:00", "10:00"))

        on_time = generate_slots(day, 60, 0, 120, pendulum.datetime(2024, 11, 25, 7, 0, tz=TZ), timezone=TZ)
        one_minute_late = generate_slots(day, 60, 0, 120, pendulum.datetime(2024, 11, 25, 7, 1, tz=TZ), timezone=TZ)

        assert times(on_time) == [("09:00", "10:00")]
        assert one_minute_late == []

    def test_naive_now_uses_tutor_timezone(self):
        """Test that a naive now is read as the tutor's wall-clock time."""
        slots = generate_slots(
            day_with(("09:00", "12:00")), 50, 15, 120, datetime(2024, 11, 25, 8, 30), timezone=TZ
        )

        assert times(slots) == [("11:10", "12:00")]

    def test_now_in_other_timezone(self):
        """Test that an aware now in another timezone is compared as an instant."""
        now_utc = pendulum.datetime(2024, 11, 25, 7, 30, tz="UTC")  # 08:30 in Paris

        slots = generate_slots(day_with(("09:00", "12:00")), 50, 15, 120, now_utc, timezone=TZ)

        assert times(slots) == [("11:10", "12:00")]

    def test_past_day(self):
        """Test that a day entirely in the past yields nothing."""
        now = pendulum.datetime(2024, 11, 26, 0, 0, tz=TZ)

        assert generate_slots(day_with(("09:00", "12:00")), 50, 15, 0, now, timezone=TZ) == []

    @pytest.mark.parametrize(
        "duration, break_minutes, notice",
        [(0, 15, 0), (-50, 15, 0), (50, -1, 0), (50, 15, -1), (50.0, 15, 0), (50, None, 0)],
    )
    def test_invalid_parameters(self, duration, break_minutes, notice):
        """Test that invalid parameters raise InvalidParameterError."""
        with pytest.raises(InvalidParameterError):
            generate_slots(day_with(("09:00", "12:00")), duration, break_minutes, notice, LONG_AGO, timezone=TZ)

    def test_skips_starts_in_dst_gap(self):
        """Test that wall-clock starts skipped by the spring-forward jump are not offered."""
        day = EffectiveDayAvailability(
            date=pendulum.date(2025, 3, 30),
            available_windows=(TimeWindow.of("01:00", "04:00"),),
        )

        slots = generate_slots(day, 60, 0, 0, LONG_AGO, timezone=TZ)

        assert times(slots) == [("01:00", "02:00"), ("03:00", "04:00")]
        starts = [s.start_instant(TZ) for s in slots]
        assert len(set(starts)) == len(starts)

    def test_invalid_timezone(self):
        """Test that unknown timezones are rejected."""
        with pytest.raises(InvalidParameterError, match="Unknown timezone"):
            SlotDiscretizer(lesson_duration_minutes=50, timezone="Mars/Olympus_Mons")

    def test_generate_slots_for_days(self):
        """Test discretizing several days into one sorted list."""
        weekly = [
            WeeklyAvailabilityWindow.of(1, "14:00", "15:00"),
            WeeklyAvailabilityWindow.of(1, "09:00", "10:00"),
            WeeklyAvailabilityWindow.of(2, "08:00", "09:00"),
        ]
        days = compute_effective_availability(weekly, [], DateRange.of("2024-11-25", "2024-11-26"))
        discretizer = SlotDiscretizer(lesson_duration_minutes=60, break_minutes=0, minimum_notice_minutes=0, timezone=TZ)

        slots = discretizer.generate_slots_for_days(days, LONG_AGO)

        assert [(s.date.to_date_string(), s.start_time) for s in slots] == [
            ("2024-11-25", "09:00"),
            ("2024-11-25", "14:00"),
            ("2024-11-26", "08:00"),
        ]


class TestScenarios:
    """End-to-end reducer and discretizer scenarios on a Monday 09:00-12:00 window."""

    weekly = [WeeklyAvailabilityWindow.of(1, "09:00", "12:00")]

    def _slots(self, periods, notice=0, now=LONG_AGO):
        days = compute_effective_availability(self.weekly, periods, DateRange.of(MONDAY, MONDAY))
        return days, generate_slots(days[0], 50, 15, notice, now, timezone=TZ)

    def test_no_unavailability(self):
        """Three slots fit with a 15 minute break."""
        _, slots = self._slots([])
        assert times(slots) == [("09:00", "09:50"), ("10:05", "10:55"), ("11:10", "12:00")]

    def test_full_day(self):
        """A full-day period leaves nothing."""
        days, slots = self._slots([FullDayUnavailability.of(MONDAY, MONDAY)])
        assert days[0].available_windows == ()
        assert slots == []

    def test_partial(self):
        """A partial period splits the window and each part is discretized on its own."""
        days, slots = self._slots([PartialUnavailability.of(MONDAY, MONDAY, "10:00", "10:30")])

        assert days[0].available_windows == (TimeWindow.of("09:00", "10:00"), TimeWindow.of("10:30", "12:00"))
        assert times(slots) == [("09:00", "09:50"), ("10:30", "11:20")]

    def test_notice(self):
        """Two hours of notice at 08:30 leaves only the 11:10 slot."""
        _, slots = self._slots([], notice=120, now=pendulum.datetime(2024, 11, 25, 8, 30, tz=TZ))
        assert times(slots) == [("11:10", "12:00")]

    def test_two_periods(self):
        """Two periods on disjoint parts of the window are both removed."""
        days, slots = self._slots([
            PartialUnavailability.of(MONDAY, MONDAY, "09:00", "09:30"),
            PartialUnavailability.of(MONDAY, MONDAY, "11:30", "12:00"),
        ])

        assert days[0].available_windows == (TimeWindow.of("09:30", "11:30"),)
        assert times(slots) == [("09:30", "10:20"), ("10:35", "11:25")]


class TestMinimumNotice:
    """Tests for meets_minimum_notice."""

    def test_boundary(self):
        """Test that exactly now + notice passes and one minute earlier fails."""
        now = pendulum.datetime(2024, 11, 25, 7, 0, tz=TZ)

        assert meets_minimum_notice(pendulum.datetime(2024, 11, 25, 9, 0, tz=TZ), now, 120)
        assert not meets_minimum_notice(pendulum.datetime(2024, 11, 25, 8, 59, tz=TZ), now, 120)

    def test_naive_values(self):
        """Test that naive values are read in the given timezone."""
        assert meets_minimum_notice(
            datetime(2024, 11, 25, 9, 0),
            pendulum.datetime(2024, 11, 25, 6, 0, tz="UTC"),  # 07:00 in Paris
            120,
            timezone=TZ,
        )

    def test_negative_notice(self):
        """Test that a negative notice is rejected."""
        with pytest.raises(InvalidParameterError):
            meets_minimum_notice(LONG_AGO, LONG_AGO, -5)


class TestGroupSlotsByPeriod:
    """Tests for group_slots_by_period."""

    def _slot(self, start, end):
        window = TimeWindow.of(start, end)
        return BookableSlot(date=pendulum.date(2024, 11, 25), window=window, duration_minutes=window.duration_minutes())

    def test_groups_in_order(self):
        """Test grouping and group order."""
        slots = [self._slot("18:30", "19:20"), self._slot("09:00", "09:50"), self._slot("11:10", "12:00")]

        grouped = group_slots_by_period(slots)

        assert list(grouped) == ["morning", "evening"]
        assert times(grouped["morning"]) == [("09:00", "09:50"), ("11:10", "12:00")]
        assert times(grouped["evening"]) == [("18:30", "19:20")]

    def test_empty(self):
        """Test that no slots gives no groups."""
        assert group_slots_by_period([]) == {}
