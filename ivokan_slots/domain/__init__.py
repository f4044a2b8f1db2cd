"""
Domain layer - Pure availability logic without external dependencies.
"""

from .conflicts import find_unavailability_conflicts, find_weekly_conflicts
from .exceptions import (
    AvailabilityDataError,
    AvailabilityError,
    InvalidIntervalError,
    InvalidParameterError,
    TutorNotFoundError,
)
from .interval_reducer import IntervalReducer, compute_effective_availability
from .models import (
    BookableSlot,
    DateRange,
    EffectiveDayAvailability,
    FullDayUnavailability,
    PartialUnavailability,
    TimeWindow,
    TutorSettings,
    UnavailabilityPeriod,
    WeeklyAvailabilityWindow,
)
from .slot_discretizer import (
    SlotDiscretizer,
    generate_slots,
    group_slots_by_period,
    meets_minimum_notice,
)

__all__ = [
    "AvailabilityDataError",
    "AvailabilityError",
    "BookableSlot",
    "DateRange",
    "EffectiveDayAvailability",
    "FullDayUnavailability",
    "IntervalReducer",
    "InvalidIntervalError",
    "InvalidParameterError",
    "PartialUnavailability",
    "SlotDiscretizer",
    "TimeWindow",
    "TutorNotFoundError",
    "TutorSettings",
    "UnavailabilityPeriod",
    "WeeklyAvailabilityWindow",
    "compute_effective_availability",
    "find_unavailability_conflicts",
    "find_weekly_conflicts",
    "generate_slots",
    "group_slots_by_period",
    "meets_minimum_notice",
]
