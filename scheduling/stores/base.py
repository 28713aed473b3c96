"""
Collaborator contracts consumed by the scheduling core.

Persistence technology is the surrounding application's concern. Any
object satisfying these protocols can back the engine; see
``scheduling.stores.memory`` for the in-process reference version.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from scheduling.schemas.availability_schema import AvailabilityTemplate
from scheduling.schemas.booking_schema import Booking, EventType
from scheduling.utils import TimeRange


class StoreConflictError(Exception):
    """Raised by a store when a uniqueness/overlap constraint rejects a write."""


class InsertStatus(str, Enum):
    INSERTED = "inserted"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class InsertOutcome:
    """Tagged result of an atomic conditional insert."""

    status: InsertStatus
    booking: Optional[Booking] = None
    conflicting: Optional[Booking] = None

    @property
    def inserted(self) -> bool:
        return self.status == InsertStatus.INSERTED


class TemplateStore(Protocol):
    def get_availability_template(self, owner_id: str) -> Optional[AvailabilityTemplate]: ...

    def save_availability_template(self, template: AvailabilityTemplate) -> AvailabilityTemplate: ...


class EventStore(Protocol):
    def get_event_type(self, event_type_id: str) -> Optional[EventType]: ...

    def save_event_type(self, event_type: EventType) -> EventType: ...

    def list_event_types(self, owner_id: str) -> list[EventType]: ...

    def delete_event_type(self, event_type_id: str) -> Optional[EventType]:
        """Remove the event type; returns it, or ``None`` when it was unknown."""
        ...


class BookingStore(Protocol):
    def list_bookings(self, owner_id: str, time_range: TimeRange) -> list[Booking]:
        """Non-cancelled bookings of the host intersecting ``time_range``."""
        ...

    def list_owner_bookings(self, owner_id: str) -> list[Booking]: ...

    def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    def insert_booking_if_free(self, booking: Booking) -> InsertOutcome:
        """Insert unless a non-cancelled booking of the same host overlaps.

        Must be atomic per host: two concurrent calls for overlapping
        intervals never both return INSERTED.
        """
        ...

    def mark_cancelled(self, booking_id: str) -> Booking: ...
