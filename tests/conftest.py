"""Shared test fixtures and helpers."""

import threading
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytest

from scheduling.clock import FixedClock
from scheduling.schemas.availability_schema import AvailabilityTemplate
from scheduling.schemas.booking_schema import Booking, BookingRequest, EventType
from scheduling.service import SchedulingService
from scheduling.stores.memory import (
    InMemoryBookingStore,
    InMemoryEventStore,
    InMemoryTemplateStore,
)

UTC = timezone.utc

# Friday 10:00; the following Monday is MONDAY.
NOW = datetime(2025, 3, 14, 10, 0, tzinfo=UTC)
FRIDAY = date(2025, 3, 14)
MONDAY = date(2025, 3, 17)
TUESDAY = date(2025, 3, 18)
SUNDAY = date(2025, 3, 16)

HOST = "host-1"


def at(day: date, hhmm: str) -> datetime:
    """Absolute UTC datetime for ``HH:MM`` on ``day``."""
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)


def hhmm(values) -> list[str]:
    return [v.strftime("%H:%M") for v in values]


def make_template(
    owner_id: str = HOST,
    days: Optional[dict] = None,
    min_lead_minutes: int = 60,
) -> AvailabilityTemplate:
    """Template with Monday 09:00-17:00 available unless ``days`` is given."""
    if days is None:
        days = {"monday": {"is_available": True, "start_time": "09:00", "end_time": "17:00"}}
    return AvailabilityTemplate(owner_id=owner_id, days=days, min_lead_minutes=min_lead_minutes)


def make_workweek_template(owner_id: str = HOST, min_lead_minutes: int = 60) -> AvailabilityTemplate:
    days = {
        day: {"is_available": True, "start_time": "09:00", "end_time": "17:00"}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
    }
    return make_template(owner_id, days, min_lead_minutes)


def make_event(
    event_id: str = "EV-30",
    owner_id: str = HOST,
    duration_minutes: int = 30,
    title: str = "Intro call",
    is_private: bool = False,
) -> EventType:
    return EventType(
        id=event_id,
        owner_id=owner_id,
        title=title,
        duration_minutes=duration_minutes,
        is_private=is_private,
    )


def make_booking(
    start: datetime,
    minutes: int = 30,
    booking_id: str = "BK-EXIST",
    owner_id: str = HOST,
    event_type_id: str = "EV-30",
    cancelled: bool = False,
) -> Booking:
    return Booking(
        id=booking_id,
        event_type_id=event_type_id,
        owner_id=owner_id,
        guest_name="Existing Guest",
        guest_email="existing@mail.io",
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status="cancelled" if cancelled else "committed",
    )


def make_request(
    event: EventType,
    day: date = MONDAY,
    start: str = "09:00",
    minutes: Optional[int] = None,
    guest_name: str = "Jane Doe",
    guest_email: str = "jane@mail.io",
) -> BookingRequest:
    start_dt = at(day, start)
    length = event.duration_minutes if minutes is None else minutes
    return BookingRequest(
        event_type_id=event.id,
        guest_name=guest_name,
        guest_email=guest_email,
        start_time=start_dt,
        end_time=start_dt + timedelta(minutes=length),
    )


class RecordingBookingStore(InMemoryBookingStore):
    """Records every call made to the booking store."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def list_bookings(self, owner_id, time_range):
        self.calls.append("list_bookings")
        return super().list_bookings(owner_id, time_range)

    def insert_booking_if_free(self, booking):
        self.calls.append("insert_booking_if_free")
        return super().insert_booking_if_free(booking)


class BarrierBookingStore(InMemoryBookingStore):
    """Holds every insert until ``parties`` callers have passed validation."""

    def __init__(self, parties: int = 2) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties)

    def insert_booking_if_free(self, booking):
        self.barrier.wait(timeout=5)
        return super().insert_booking_if_free(booking)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def template_store():
    return InMemoryTemplateStore()


@pytest.fixture
def event_store():
    return InMemoryEventStore()


@pytest.fixture
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture
def service(template_store, event_store, booking_store, clock):
    return SchedulingService(template_store, event_store, booking_store, clock=clock)


@pytest.fixture
def event():
    return make_event()


@pytest.fixture
def seeded_service(service, template_store, event_store, event):
    """Service with the Monday 09:00-17:00 template and a 30-minute event stored."""
    template_store.save_availability_template(make_template())
    event_store.save_event_type(event)
    return service
