"""Weekly availability template and slot data models."""

from datetime import date, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from scheduling.config import settings
from scheduling.utils import format_time, minutes_of_day, parse_time_of_day


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        return list(cls)[day.weekday()]


def _default_start() -> time:
    return parse_time_of_day(settings.scheduling.default_day_start)


def _default_end() -> time:
    return parse_time_of_day(settings.scheduling.default_day_end)


class DayAvailability(BaseModel):
    """Working window for one weekday."""

    is_available: bool = False
    start_time: time = Field(default_factory=_default_start)
    end_time: time = Field(default_factory=_default_end)

    @property
    def window_minutes(self) -> int:
        return max(minutes_of_day(self.end_time) - minutes_of_day(self.start_time), 0)


class AvailabilityTemplate(BaseModel):
    """A host's recurring weekly rules plus the lead-time policy."""

    owner_id: str = Field(min_length=1)
    days: dict[Weekday, DayAvailability] = Field(default_factory=dict, validate_default=True)
    min_lead_minutes: int = Field(
        default_factory=lambda: settings.scheduling.default_min_lead_minutes, ge=0
    )

    @field_validator("days")
    @classmethod
    def _fill_missing_weekdays(
        cls, days: dict[Weekday, DayAvailability]
    ) -> dict[Weekday, DayAvailability]:
        return {day: days.get(day, DayAvailability()) for day in Weekday}

    @model_validator(mode="after")
    def _check_windows(self) -> "AvailabilityTemplate":
        for weekday, rule in self.days.items():
            if rule.is_available and rule.start_time >= rule.end_time:
                raise ValueError(
                    f"{weekday.value}: start time {format_time(rule.start_time)} "
                    f"must be before end time {format_time(rule.end_time)}"
                )
        return self

    def rule_for(self, day: date) -> DayAvailability:
        return self.days[Weekday.from_date(day)]

    def active_days(self) -> int:
        """Number of weekdays the host accepts bookings on."""
        return sum(1 for rule in self.days.values() if rule.is_available)

    def weekly_hours(self) -> float:
        """Total bookable hours across the week."""
        minutes = sum(rule.window_minutes for rule in self.days.values() if rule.is_available)
        return minutes / 60


class DayAvailabilityPayload(BaseModel):
    """One entry of the visitor-facing availability list."""

    date: str
    slots: list[str] = Field(default_factory=list)
    weekday: Optional[Weekday] = None


def to_payload(resolved: dict[date, list[time]]) -> list[DayAvailabilityPayload]:
    """Flatten resolver output into ``[{date, slots}]`` ordered by date."""
    return [
        DayAvailabilityPayload(
            date=day.isoformat(),
            slots=[format_time(t) for t in times],
            weekday=Weekday.from_date(day),
        )
        for day, times in sorted(resolved.items())
    ]
