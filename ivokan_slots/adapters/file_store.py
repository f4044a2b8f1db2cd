"""
Availability stores backed by memory or by a YAML data file.

The data file mirrors the ``tutor_availability`` rows of the booking backend:

    tutors:
      tutor-1:
        name: Amélie
        timezone: Europe/Paris
        break_duration_minutes: 15
        minimum_time_notice: 120
        availability:
          - type: weekly_availability
            day_of_week: 1
            start_time: "09:00"
            end_time: "12:00"
          - type: unavailability
            start_date: 2024-11-25
            end_date: 2024-11-25
            is_full_day: false
            start_time: "10:00"
            end_time: "10:30"

Quote times: unquoted ``10:30`` is read by YAML 1.1 as a base-60 integer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..domain.exceptions import (
    AvailabilityDataError,
    AvailabilityError,
    InvalidParameterError,
    TutorNotFoundError,
)
from ..domain.models import (
    FullDayUnavailability,
    PartialUnavailability,
    TimeWindow,
    TutorSettings,
    UnavailabilityPeriod,
    WeeklyAvailabilityWindow,
    validate_timezone,
)

logger = logging.getLogger(__name__)


class AvailabilityRecord(BaseModel):
    """One stored availability row, either a weekly window or an unavailability."""
    type: Literal["weekly_availability", "unavailability"]
    day_of_week: Optional[int] = None
    start_time: Optional[Union[str, int]] = None
    end_time: Optional[Union[str, int]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_full_day: bool = False

    @model_validator(mode="after")
    def validate_required_fields(self) -> "AvailabilityRecord":
        """Ensure the fields required by the row type are present."""
        if self.type == "weekly_availability":
            missing = [
                name for name in ("day_of_week", "start_time", "end_time")
                if getattr(self, name) is None
            ]
        else:
            missing = [name for name in ("start_date", "end_date") if getattr(self, name) is None]
            if not self.is_full_day:
                missing += [
                    name for name in ("start_time", "end_time")
                    if getattr(self, name) is None
                ]
        if missing:
            raise ValueError(f"{self.type} row is missing {', '.join(missing)}")
        return self

    def to_weekly_window(self) -> WeeklyAvailabilityWindow:
        return WeeklyAvailabilityWindow(
            day_of_week=self.day_of_week,
            window=TimeWindow.of(self.start_time, self.end_time),
        )

    def to_unavailability(self) -> UnavailabilityPeriod:
        if self.is_full_day:
            return FullDayUnavailability(start_date=self.start_date, end_date=self.end_date)
        return PartialUnavailability(
            start_date=self.start_date,
            end_date=self.end_date,
            window=TimeWindow.of(self.start_time, self.end_time),
        )


class TutorRecord(BaseModel):
    """A tutor's profile settings and availability rows."""
    name: Optional[str] = None
    timezone: Optional[str] = None
    break_duration_minutes: Optional[int] = None
    minimum_time_notice: Optional[int] = None
    availability: List[AvailabilityRecord] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, value: Optional[str]) -> Optional[str]:
        """Ensure a configured timezone is a known IANA identifier."""
        if value is None:
            return value
        try:
            return validate_timezone(value)
        except InvalidParameterError as exc:
            raise ValueError(str(exc)) from exc


class AvailabilityDocument(BaseModel):
    """Root of the YAML data file."""
    tutors: Dict[str, TutorRecord] = Field(default_factory=dict)


@dataclass
class TutorAvailability:
    """Domain objects held for one tutor."""
    weekly: List[WeeklyAvailabilityWindow] = field(default_factory=list)
    unavailability: List[UnavailabilityPeriod] = field(default_factory=list)
    settings: TutorSettings = field(default_factory=TutorSettings)
    name: Optional[str] = None


class InMemoryAvailabilityStore:
    """
    Store holding domain objects in memory, keyed by tutor id.

    Satisfies ``AvailabilityStoreProtocol``.
    """

    def __init__(self, tutors: Optional[Dict[str, TutorAvailability]] = None):
        self._tutors: Dict[str, TutorAvailability] = dict(tutors or {})

    def add_tutor(self, tutor_id: str, availability: TutorAvailability) -> None:
        self._tutors[tutor_id] = availability

    def tutors(self) -> Dict[str, TutorAvailability]:
        return dict(self._get_tutors())

    async def get_weekly_availability(self, tutor_id: str) -> List[WeeklyAvailabilityWindow]:
        return list(self._get(tutor_id).weekly)

    async def get_unavailability_periods(self, tutor_id: str) -> List[UnavailabilityPeriod]:
        return list(self._get(tutor_id).unavailability)

    async def get_tutor_settings(self, tutor_id: str) -> TutorSettings:
        return self._get(tutor_id).settings

    def _get_tutors(self) -> Dict[str, TutorAvailability]:
        return self._tutors

    def _get(self, tutor_id: str) -> TutorAvailability:
        tutors = self._get_tutors()
        if tutor_id not in tutors:
            raise TutorNotFoundError(f"Unknown tutor: '{tutor_id}'")
        return tutors[tutor_id]


class FileAvailabilityStore(InMemoryAvailabilityStore):
    """
    Store that loads tutors from a YAML data file on first access.
    """

    def __init__(self, data_file: Path):
        super().__init__()
        self.data_file = data_file
        self._loaded = False

    def _get_tutors(self) -> Dict[str, TutorAvailability]:
        if not self._loaded:
            self._tutors = self._load()
            self._loaded = True
        return self._tutors

    def _load(self) -> Dict[str, TutorAvailability]:
        """Read and convert the data file."""
        if not self.data_file.exists():
            raise AvailabilityDataError(f"Availability data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise AvailabilityDataError(f"Invalid YAML in {self.data_file}: {exc}") from exc

        if not isinstance(raw, dict):
            raise AvailabilityDataError("Data file must contain a mapping at the root level.")

        try:
            document = AvailabilityDocument(**raw)
        except ValidationError as exc:
            raise AvailabilityDataError(f"Invalid availability data in {self.data_file}: {exc}") from exc

        tutors = {
            str(tutor_id): _convert_tutor(str(tutor_id), record)
            for tutor_id, record in document.tutors.items()
        }
        logger.debug("Loaded %d tutor(s) from %s", len(tutors), self.data_file)
        return tutors


def _convert_tutor(tutor_id: str, record: TutorRecord) -> TutorAvailability:
    availability = TutorAvailability(
        settings=TutorSettings(
            timezone=record.timezone,
            break_minutes=record.break_duration_minutes,
            minimum_notice_minutes=record.minimum_time_notice,
        ),
        name=record.name,
    )

    for index, row in enumerate(record.availability):
        try:
            if row.type == "weekly_availability":
                availability.weekly.append(row.to_weekly_window())
            else:
                availability.unavailability.append(row.to_unavailability())
        except AvailabilityError as exc:
            raise AvailabilityDataError(
                f"Tutor '{tutor_id}', availability row {index}: {exc}"
            ) from exc

    return availability
