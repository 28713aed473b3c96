"""
In-memory stores for templates, event types and bookings.

In production these would be backed by a database, with the booking
overlap guarantee provided by an exclusion constraint or a serialized
per-host insert. Here a per-owner lock makes the check-and-insert atomic.
"""

import logging
import threading
from collections import defaultdict
from typing import Optional

from scheduling.schemas.availability_schema import AvailabilityTemplate
from scheduling.schemas.booking_schema import Booking, BookingStatus, EventType
from scheduling.stores.base import InsertOutcome, InsertStatus
from scheduling.utils import TimeRange, to_utc

logger = logging.getLogger(__name__)


class InMemoryTemplateStore:
    """Availability templates keyed by owner."""

    def __init__(self) -> None:
        self._templates: dict[str, AvailabilityTemplate] = {}

    def get_availability_template(self, owner_id: str) -> Optional[AvailabilityTemplate]:
        return self._templates.get(owner_id)

    def save_availability_template(self, template: AvailabilityTemplate) -> AvailabilityTemplate:
        self._templates[template.owner_id] = template
        logger.debug("Availability saved for owner %s", template.owner_id)
        return template

    def reset(self) -> None:
        """Clear all templates. Used by test fixtures for isolation."""
        self._templates.clear()


class InMemoryEventStore:
    """Event types keyed by id."""

    def __init__(self) -> None:
        self._events: dict[str, EventType] = {}

    def get_event_type(self, event_type_id: str) -> Optional[EventType]:
        return self._events.get(event_type_id)

    def save_event_type(self, event_type: EventType) -> EventType:
        self._events[event_type.id] = event_type
        logger.debug("Event type saved: %s (%s)", event_type.id, event_type.title)
        return event_type

    def list_event_types(self, owner_id: str) -> list[EventType]:
        return [e for e in self._events.values() if e.owner_id == owner_id]

    def delete_event_type(self, event_type_id: str) -> Optional[EventType]:
        removed = self._events.pop(event_type_id, None)
        if removed is not None:
            logger.debug("Event type deleted: %s", event_type_id)
        return removed

    def reset(self) -> None:
        self._events.clear()


class InMemoryBookingStore:
    """Bookings keyed by id, with an atomic per-owner conditional insert."""

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._guard = threading.Lock()
        self._owner_locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._guard:
            return self._owner_locks[owner_id]

    def list_bookings(self, owner_id: str, time_range: TimeRange) -> list[Booking]:
        found = [
            b
            for b in list(self._bookings.values())
            if b.owner_id == owner_id and not b.is_cancelled and b.interval.overlaps(time_range)
        ]
        return sorted(found, key=lambda b: to_utc(b.start_time))

    def list_owner_bookings(self, owner_id: str) -> list[Booking]:
        found = [b for b in list(self._bookings.values()) if b.owner_id == owner_id]
        return sorted(found, key=lambda b: to_utc(b.start_time))

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def insert_booking_if_free(self, booking: Booking) -> InsertOutcome:
        with self._lock_for(booking.owner_id):
            clashes = self.list_bookings(booking.owner_id, booking.interval)
            if clashes:
                logger.info(
                    "Insert rejected for %s: overlaps %s", booking.id, clashes[0].id
                )
                return InsertOutcome(status=InsertStatus.CONFLICT, conflicting=clashes[0])
            self._bookings[booking.id] = booking
        logger.debug("Booking stored: %s", booking.id)
        return InsertOutcome(status=InsertStatus.INSERTED, booking=booking)

    def mark_cancelled(self, booking_id: str) -> Booking:
        booking = self._bookings[booking_id]
        with self._lock_for(booking.owner_id):
            cancelled = booking.model_copy(update={"status": BookingStatus.CANCELLED})
            self._bookings[booking_id] = cancelled
        return cancelled

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        self._bookings.clear()
