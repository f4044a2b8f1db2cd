"""
Application services for resolving a tutor's bookable slots.

The service coordinates fetching availability records via a store adapter and
delegates the calculation to the domain-level ``IntervalReducer`` and
``SlotDiscretizer``. The store is described by a small protocol so the CLI can
use the YAML file store while tests plug in a stub.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Union

from ..config import BookingDefaults
from ..domain.conflicts import find_unavailability_conflicts, find_weekly_conflicts
from ..domain.exceptions import AvailabilityDataError
from ..domain.interval_reducer import IntervalReducer
from ..domain.models import (
    BookableSlot,
    DateRange,
    EffectiveDayAvailability,
    TutorSettings,
    UnavailabilityPeriod,
    WeeklyAvailabilityWindow,
)
from ..domain.slot_discretizer import SlotDiscretizer

logger = logging.getLogger(__name__)


class AvailabilityStoreProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the service."""

    async def get_weekly_availability(self, tutor_id: str) -> List[WeeklyAvailabilityWindow]:
        """Return the tutor's recurring weekly windows."""

    async def get_unavailability_periods(self, tutor_id: str) -> List[UnavailabilityPeriod]:
        """Return the tutor's dated unavailability periods."""

    async def get_tutor_settings(self, tutor_id: str) -> TutorSettings:
        """Return the tutor's booking preferences."""


class AvailabilityService:
    """
    Orchestrates record retrieval, interval reduction and slot generation.
    """

    def __init__(
        self,
        store: AvailabilityStoreProtocol,
        defaults: Optional[BookingDefaults] = None,
        timezone: str = "UTC",
    ) -> None:
        self._store = store
        self._defaults = defaults or BookingDefaults()
        self._timezone = timezone

    async def effective_availability(
        self,
        tutor_id: str,
        date_range: DateRange,
        merge_adjacent: bool = False,
    ) -> List[EffectiveDayAvailability]:
        """Fetch the tutor's records and resolve each date of the range."""
        reducer = await self._build_reducer(tutor_id)
        days = reducer.compute_effective_availability(date_range, merge_adjacent=merge_adjacent)

        logger.debug(
            "Resolved %d day(s) for tutor %s, %d with availability",
            len(days),
            tutor_id,
            sum(1 for day in days if day.is_available),
        )
        return days

    async def bookable_slots(
        self,
        tutor_id: str,
        date_range: DateRange,
        lesson_duration_minutes: int,
        now: datetime,
        *,
        break_minutes: Optional[int] = None,
        minimum_notice_minutes: Optional[int] = None,
    ) -> List[BookableSlot]:
        """
        Compute the slots a student may book over ``date_range``.

        Explicit ``break_minutes`` / ``minimum_notice_minutes`` take precedence
        over the tutor's own settings, which take precedence over the
        configured defaults.
        """
        settings = await self._fetch(self._store.get_tutor_settings, tutor_id)
        days = await self.effective_availability(tutor_id, date_range)

        discretizer = SlotDiscretizer(
            lesson_duration_minutes=lesson_duration_minutes,
            break_minutes=_first_set(
                break_minutes, settings.break_minutes, self._defaults.break_minutes
            ),
            minimum_notice_minutes=_first_set(
                minimum_notice_minutes,
                settings.minimum_notice_minutes,
                self._defaults.minimum_notice_minutes,
            ),
            timezone=self.tutor_timezone(settings),
        )

        slots = discretizer.generate_slots_for_days(days, now)
        logger.debug("Generated %d slot(s) for tutor %s", len(slots), tutor_id)
        return slots

    async def check_conflicts(
        self,
        tutor_id: str,
        candidate: Union[WeeklyAvailabilityWindow, UnavailabilityPeriod],
    ) -> list:
        """Return the tutor's existing entries that a new entry would overlap."""
        if isinstance(candidate, WeeklyAvailabilityWindow):
            existing = await self._fetch(self._store.get_weekly_availability, tutor_id)
            return find_weekly_conflicts(candidate, existing)

        existing = await self._fetch(self._store.get_unavailability_periods, tutor_id)
        return find_unavailability_conflicts(candidate, existing)

    async def get_tutor_settings(self, tutor_id: str) -> TutorSettings:
        return await self._fetch(self._store.get_tutor_settings, tutor_id)

    def tutor_timezone(self, settings: TutorSettings) -> str:
        return settings.timezone or self._timezone

    async def _build_reducer(self, tutor_id: str) -> IntervalReducer:
        weekly = await self._fetch(self._store.get_weekly_availability, tutor_id)
        unavailability = await self._fetch(self._store.get_unavailability_periods, tutor_id)

        logger.debug(
            "Tutor %s has %d weekly window(s) and %d unavailability period(s)",
            tutor_id,
            len(weekly),
            len(unavailability),
        )
        return IntervalReducer(weekly, unavailability)

    @staticmethod
    async def _fetch(method, tutor_id: str):
        try:
            return await method(tutor_id)
        except AvailabilityDataError as exc:
            logger.error("Could not load availability data for tutor %s: %s", tutor_id, exc)
            raise


def _first_set(*values: Optional[int]) -> int:
    for value in values:
        if value is not None:
            return value
    raise ValueError("No value provided")
