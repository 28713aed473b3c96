"""
Free-slot resolution: candidate slots minus existing bookings.

For each requested date the resolver asks the slot generator for
candidates, reads that date's bookings once, and drops every candidate
whose ``[start, start + duration)`` overlaps a booking. Dates left with
no slots are omitted from the result.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from scheduling.clock import SystemClock
from scheduling.config import SchedulingConfig, settings
from scheduling.engine.booking_index import BookingIndex
from scheduling.engine.slot_generator import generate_slots
from scheduling.errors import InvalidRequestError
from scheduling.schemas.availability_schema import AvailabilityTemplate
from scheduling.schemas.booking_schema import EventType
from scheduling.utils import combine, intervals_overlap, iter_dates, shift

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Read-only: safe to call repeatedly and concurrently."""

    def __init__(
        self,
        index: BookingIndex,
        clock=None,
        config: Optional[SchedulingConfig] = None,
    ) -> None:
        self.index = index
        self.clock = clock or SystemClock(index.tz)
        self.config = config or settings.scheduling

    def resolve(
        self,
        template: AvailabilityTemplate,
        event_type: EventType,
        from_date: date,
        to_date: date,
    ) -> dict[date, list[time]]:
        """Free slots per date in ``[from_date, to_date]``; empty dates are absent."""
        self._check_range(template, event_type, from_date, to_date)
        now = self.clock.now()
        today = now.astimezone(self.index.tz).date()

        resolved: dict[date, list[time]] = {}
        for day in iter_dates(max(from_date, today), to_date):
            free = self.resolve_day(template, event_type, day, now)
            if free:
                resolved[day] = free

        logger.info(
            "Resolved %d bookable dates for owner=%s event=%s (%s..%s)",
            len(resolved), template.owner_id, event_type.id, from_date, to_date,
        )
        return resolved

    def resolve_day(
        self,
        template: AvailabilityTemplate,
        event_type: EventType,
        day: date,
        now: Optional[datetime] = None,
    ) -> list[time]:
        """Free slots on a single date, ascending."""
        now = now or self.clock.now()
        candidates = generate_slots(
            template,
            day,
            event_type.duration_minutes,
            now,
            step_minutes=self.config.slot_step_minutes,
            tz=self.index.tz,
        )
        if not candidates:
            return []

        booked = self.index.for_day(template.owner_id, day)
        if not booked:
            return candidates

        duration = timedelta(minutes=event_type.duration_minutes)
        free = []
        for slot in candidates:
            start = combine(day, slot, self.index.tz)
            end = shift(start, duration)
            if any(intervals_overlap(start, end, b.start_time, b.end_time) for b in booked):
                continue
            free.append(slot)
        return free

    def _check_range(
        self,
        template: AvailabilityTemplate,
        event_type: EventType,
        from_date: date,
        to_date: date,
    ) -> None:
        if from_date > to_date:
            raise InvalidRequestError(
                f"from_date {from_date.isoformat()} is after to_date {to_date.isoformat()}"
            )
        span = (to_date - from_date).days + 1
        if span > self.config.max_range_days:
            raise InvalidRequestError(
                f"Date range of {span} days exceeds the limit of {self.config.max_range_days}"
            )
        if template.owner_id != event_type.owner_id:
            raise InvalidRequestError(
                f"Event type {event_type.id} does not belong to owner {template.owner_id}"
            )
