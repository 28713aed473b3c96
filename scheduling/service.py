"""
Scheduling service: the operations exposed to the application layer.

Wires the stores into the engine (index -> resolver -> committer) and adds
the host-side operations behind the availability, event type and
meetings pages. Every mutating or resolving call runs under its own
correlation id.
"""

from collections.abc import Mapping
from datetime import date, time, timedelta
from typing import Any, Optional, Union

from pydantic import ValidationError

from scheduling.clock import SystemClock
from scheduling.config import SchedulingConfig, settings
from scheduling.engine.booking_index import BookingIndex, call_store
from scheduling.engine.committer import BookingCommitter
from scheduling.engine.resolver import AvailabilityResolver
from scheduling.errors import InvalidRequestError, NotFoundError
from scheduling.logging_context import get_request_logger, request_scoped
from scheduling.schemas.availability_schema import (
    AvailabilityTemplate,
    DayAvailabilityPayload,
    to_payload,
)
from scheduling.schemas.booking_schema import Booking, BookingRequest, EventType
from scheduling.stores.base import BookingStore, EventStore, TemplateStore
from scheduling.stores.memory import (
    InMemoryBookingStore,
    InMemoryEventStore,
    InMemoryTemplateStore,
)
from scheduling.utils import new_id, resolve_timezone, to_utc

logger = get_request_logger(__name__)

MEETING_KINDS = ("upcoming", "past")


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class SchedulingService:
    """Facade over the availability resolver and booking committer."""

    def __init__(
        self,
        templates: TemplateStore,
        events: EventStore,
        bookings: BookingStore,
        clock=None,
        config: Optional[SchedulingConfig] = None,
    ) -> None:
        self.config = config or settings.scheduling
        tz = resolve_timezone(self.config.timezone)
        self.templates = templates
        self.events = events
        self.bookings = bookings
        self.clock = clock or SystemClock(tz)
        self.index = BookingIndex(bookings, tz)
        self.resolver = AvailabilityResolver(self.index, self.clock, self.config)
        self.committer = BookingCommitter(events, templates, bookings, self.resolver)

    @classmethod
    def in_memory(cls, clock=None, config: Optional[SchedulingConfig] = None) -> "SchedulingService":
        """Service backed by fresh in-memory stores."""
        return cls(
            InMemoryTemplateStore(),
            InMemoryEventStore(),
            InMemoryBookingStore(),
            clock=clock,
            config=config,
        )

    # ------------------------------------------------------------------ #
    # Visitor-facing core operations
    # ------------------------------------------------------------------ #

    @request_scoped
    def resolve_available_slots(
        self, owner_id: str, event_type_id: str, from_date: date, to_date: date
    ) -> dict[date, list[time]]:
        """Free slots per date; dates without availability are absent."""
        event = self._event_for_owner(owner_id, event_type_id)
        template = self.get_availability(owner_id)
        return self.resolver.resolve(template, event, from_date, to_date)

    @request_scoped
    def available_days(
        self,
        owner_id: str,
        event_type_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[DayAvailabilityPayload]:
        """Booking-page payload ``[{date, slots}]``; defaults to the booking horizon."""
        start = from_date or self.clock.now().date()
        end = to_date or start + timedelta(days=self.config.booking_horizon_days - 1)
        return to_payload(self.resolve_available_slots(owner_id, event_type_id, start, end))

    @request_scoped
    def commit_booking(self, request: Union[BookingRequest, Mapping[str, Any]]) -> Booking:
        """Commit a booking request; raises a SchedulingError subclass on rejection."""
        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(dict(request))
            except ValidationError as exc:
                raise InvalidRequestError(_validation_message(exc)) from exc
        return self.committer.commit(request)

    @request_scoped
    def cancel_booking(self, booking_id: str, owner_id: Optional[str] = None) -> Booking:
        """Idempotent cancellation; ``owner_id`` restricts it to the host's own bookings."""
        return self.committer.cancel(booking_id, owner_id)

    # ------------------------------------------------------------------ #
    # Host-side operations
    # ------------------------------------------------------------------ #

    def get_availability(self, owner_id: str) -> AvailabilityTemplate:
        """The stored template, or an all-days-off default for a new host."""
        template = call_store(
            "get_availability_template", self.templates.get_availability_template, owner_id
        )
        if template is None:
            return AvailabilityTemplate(owner_id=owner_id)
        return template

    @request_scoped
    def update_availability(
        self,
        owner_id: str,
        days: Mapping[str, Any],
        min_lead_minutes: Optional[int] = None,
    ) -> AvailabilityTemplate:
        """Validate and replace the host's weekly template."""
        payload: dict[str, Any] = {"owner_id": owner_id, "days": dict(days)}
        if min_lead_minutes is not None:
            payload["min_lead_minutes"] = min_lead_minutes
        try:
            template = AvailabilityTemplate.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequestError(_validation_message(exc)) from exc

        saved = call_store(
            "save_availability_template", self.templates.save_availability_template, template
        )
        logger.info(
            "Availability updated for %s: %d active days, %.1f h/week, lead %d min",
            owner_id, saved.active_days(), saved.weekly_hours(), saved.min_lead_minutes,
        )
        return saved

    @request_scoped
    def create_event_type(
        self,
        owner_id: str,
        title: str,
        duration_minutes: int,
        description: Optional[str] = None,
        is_private: bool = False,
    ) -> EventType:
        try:
            event = EventType(
                id=new_id("EV"),
                owner_id=owner_id,
                title=title,
                description=description,
                duration_minutes=duration_minutes,
                is_private=is_private,
            )
        except ValidationError as exc:
            raise InvalidRequestError(_validation_message(exc)) from exc
        saved = call_store("save_event_type", self.events.save_event_type, event)
        logger.info("Event type created: %s '%s' (%d min)", saved.id, saved.title, saved.duration_minutes)
        return saved

    def list_event_types(self, owner_id: str, include_private: bool = True) -> list[EventType]:
        """Host's event types; the public profile passes ``include_private=False``."""
        found = call_store("list_event_types", self.events.list_event_types, owner_id)
        if not include_private:
            found = [e for e in found if not e.is_private]
        return sorted(found, key=lambda e: e.title.lower())

    @request_scoped
    def delete_event_type(self, owner_id: str, event_type_id: str) -> EventType:
        """Remove one of the host's event types.

        Bookings already made for it are left untouched; new commits against
        it fail with NotFoundError.
        """
        event = self._event_for_owner(owner_id, event_type_id)
        call_store("delete_event_type", self.events.delete_event_type, event.id)
        logger.info("Event type deleted: %s '%s'", event.id, event.title)
        return event

    def booking_counts(self, owner_id: str) -> dict[str, int]:
        """Live bookings per event type id, zero for types nobody booked yet."""
        counts = {
            e.id: 0
            for e in call_store("list_event_types", self.events.list_event_types, owner_id)
        }
        owned = call_store("list_owner_bookings", self.bookings.list_owner_bookings, owner_id)
        for booking in owned:
            if booking.is_cancelled or booking.event_type_id not in counts:
                continue
            counts[booking.event_type_id] += 1
        return counts

    def list_meetings(self, owner_id: str, kind: str = "upcoming") -> list[Booking]:
        """Live bookings split at "now": upcoming ascending, past most recent first."""
        if kind not in MEETING_KINDS:
            raise InvalidRequestError(f"kind must be one of {MEETING_KINDS}, got {kind!r}")
        now = to_utc(self.clock.now())
        owned = call_store("list_owner_bookings", self.bookings.list_owner_bookings, owner_id)
        live = [b for b in owned if not b.is_cancelled]
        if kind == "upcoming":
            upcoming = (b for b in live if to_utc(b.start_time) >= now)
            return sorted(upcoming, key=lambda b: to_utc(b.start_time))
        past = (b for b in live if to_utc(b.start_time) < now)
        return sorted(past, key=lambda b: to_utc(b.start_time), reverse=True)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _event_for_owner(self, owner_id: str, event_type_id: str) -> EventType:
        event = call_store("get_event_type", self.events.get_event_type, event_type_id)
        if event is None or event.owner_id != owner_id:
            raise NotFoundError(f"Event type {event_type_id} not found for owner {owner_id}")
        return event
