"""
Booking commit and cancellation.

Validation runs fail-fast in a fixed order:
  1. event type exists                      -> NotFoundError
  2. end - start equals the event duration  -> InvalidRequestError
  3. start is a slot the resolver offers now -> SlotUnavailableError
  4. no overlapping booking at commit time  -> SlotUnavailableError
then a single atomic conditional insert. A conflict reported by the
store (tagged outcome or StoreConflictError) is a lost race and maps to
SlotUnavailableError, never to a generic failure.
"""

from datetime import datetime
from typing import Optional

from scheduling.engine.booking_index import BookingIndex, call_store
from scheduling.engine.lifecycle import BookingLifecycle, LifecycleTrigger
from scheduling.engine.resolver import AvailabilityResolver
from scheduling.errors import (
    DependencyFailureError,
    InvalidRequestError,
    NotFoundError,
    SchedulingError,
    SlotUnavailableError,
)
from scheduling.logging_context import get_request_logger
from scheduling.schemas.booking_schema import Booking, BookingRequest, EventType
from scheduling.stores.base import BookingStore, EventStore, StoreConflictError, TemplateStore
from scheduling.utils import (
    combine,
    format_time,
    new_id,
    to_reference,
    to_utc,
    wall_time_exists,
)

logger = get_request_logger(__name__)


def _trace(lifecycle: BookingLifecycle) -> str:
    return " -> ".join(lifecycle.get_state_trace())


class BookingCommitter:
    """The only mutating component of the core."""

    def __init__(
        self,
        events: EventStore,
        templates: TemplateStore,
        bookings: BookingStore,
        resolver: AvailabilityResolver,
    ) -> None:
        self._events = events
        self._templates = templates
        self._bookings = bookings
        self._resolver = resolver

    @property
    def _index(self) -> BookingIndex:
        return self._resolver.index

    # ------------------------------------------------------------------ #
    # Commit
    # ------------------------------------------------------------------ #

    def commit(self, request: BookingRequest) -> Booking:
        """Validate ``request`` against current availability and persist it."""
        lifecycle = BookingLifecycle()
        try:
            booking = self._validate_and_insert(request)
        except SchedulingError as exc:
            lifecycle.transition(LifecycleTrigger.REJECTED, reason=exc.kind)
            logger.info(
                "Booking rejected for event %s (%s): %s [%s]",
                request.event_type_id, exc.kind, exc.message, _trace(lifecycle),
            )
            raise

        lifecycle.transition(LifecycleTrigger.COMMITTED)
        logger.info(
            "Booking committed: %s for owner %s at %s [%s]",
            booking.id, booking.owner_id, booking.start_time.isoformat(), _trace(lifecycle),
        )
        return booking

    def _validate_and_insert(self, request: BookingRequest) -> Booking:
        event = self._load_event(request.event_type_id)

        tz = self._index.tz
        start = to_reference(request.start_time, tz)
        end = to_reference(request.end_time, tz)
        elapsed = to_utc(end) - to_utc(start)
        if elapsed != event.duration:
            raise InvalidRequestError(
                f"Requested interval is {int(elapsed.total_seconds() // 60)} minutes "
                f"but '{event.title}' lasts {event.duration_minutes} minutes"
            )

        self._check_offered(event, start)

        clashes = self._index.conflicts(event.owner_id, start, end)
        if clashes:
            raise SlotUnavailableError(
                f"{start.isoformat()} overlaps existing booking {clashes[0].id}"
            )

        booking = Booking(
            id=new_id("BK"),
            event_type_id=event.id,
            owner_id=event.owner_id,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            start_time=start,
            end_time=end,
            additional_info=request.additional_info,
            created_at=self._resolver.clock.now(),
        )
        return self._insert(booking)

    def _load_event(self, event_type_id: str) -> EventType:
        event = call_store("get_event_type", self._events.get_event_type, event_type_id)
        if event is None:
            raise NotFoundError(f"Event type {event_type_id} not found")
        return event

    def _check_offered(self, event: EventType, start: datetime) -> None:
        """Re-derive availability now instead of trusting what the visitor saw."""
        template = call_store(
            "get_availability_template",
            self._templates.get_availability_template,
            event.owner_id,
        )
        if template is None:
            raise SlotUnavailableError(f"Owner {event.owner_id} has no availability configured")

        day = start.date()
        offered = {
            to_utc(combine(day, slot, self._index.tz))
            for slot in self._resolver.resolve_day(template, event, day)
        }
        if not wall_time_exists(start) or to_utc(start) not in offered:
            raise SlotUnavailableError(
                f"{start.date().isoformat()} {format_time(start.time())} is not an "
                f"available slot for '{event.title}'"
            )

    def _insert(self, booking: Booking) -> Booking:
        try:
            outcome = self._bookings.insert_booking_if_free(booking)
        except StoreConflictError as exc:
            raise SlotUnavailableError(
                f"{booking.start_time.isoformat()} was taken by a concurrent booking"
            ) from exc
        except Exception as exc:
            logger.error("Store call insert_booking_if_free failed: %s", exc)
            raise DependencyFailureError(f"insert_booking_if_free failed: {exc}") from exc

        if not outcome.inserted:
            taken_by = outcome.conflicting.id if outcome.conflicting else "another booking"
            raise SlotUnavailableError(
                f"{booking.start_time.isoformat()} was taken by {taken_by}"
            )
        return outcome.booking or booking

    # ------------------------------------------------------------------ #
    # Cancellation
    # ------------------------------------------------------------------ #

    def cancel(self, booking_id: str, owner_id: Optional[str] = None) -> Booking:
        """Cancel a booking. Cancelling an already-cancelled booking is a no-op."""
        booking = call_store("get_booking", self._bookings.get_booking, booking_id)
        if booking is None or (owner_id is not None and booking.owner_id != owner_id):
            raise NotFoundError(f"Booking {booking_id} not found")

        lifecycle = BookingLifecycle(initial=booking.status)
        lifecycle.transition(LifecycleTrigger.CANCELLED)
        if booking.is_cancelled:
            logger.info("Booking %s already cancelled [%s]", booking_id, _trace(lifecycle))
            return booking

        cancelled = call_store("mark_cancelled", self._bookings.mark_cancelled, booking_id)
        logger.info("Booking cancelled: %s [%s]", booking_id, _trace(lifecycle))
        return cancelled
