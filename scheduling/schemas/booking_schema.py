"""Event type, booking and booking request data models."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from scheduling.utils import TimeRange, to_utc


class BookingStatus(str, Enum):
    """Lifecycle status of a booking attempt or stored booking."""

    PENDING = "pending"
    COMMITTED = "committed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class EventType(BaseModel):
    """A bookable meeting kind owned by one host."""

    id: str
    owner_id: str
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    duration_minutes: int = Field(gt=0)
    is_private: bool = False

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


class Booking(BaseModel):
    """
    A committed booking.

    Frozen: cancellation stores a copy with a new status and never
    touches the interval.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    event_type_id: str
    owner_id: str
    guest_name: str
    guest_email: str
    start_time: datetime
    end_time: datetime
    additional_info: Optional[str] = None
    status: BookingStatus = BookingStatus.COMMITTED
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_interval(self) -> "Booking":
        if to_utc(self.end_time) <= to_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def interval(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


class BookingRequest(BaseModel):
    """Validated visitor booking request."""

    event_type_id: str = Field(min_length=1)
    guest_name: str = Field(min_length=1, max_length=200)
    guest_email: EmailStr
    start_time: datetime
    end_time: datetime
    additional_info: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("guest_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("guest_name must not be blank")
        return value

    @field_validator("guest_email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("additional_info")
    @classmethod
    def _blank_info_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()
