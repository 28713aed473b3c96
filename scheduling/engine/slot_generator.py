"""
Weekly template -> candidate slot starts for one calendar date.

Steps through the weekday's window on a fixed grid (the configured slot
step, independent of the event duration) and keeps every start whose
``[start, start + duration)`` fits inside the window and respects the
template's minimum lead time.

Does NOT consider existing bookings; see ``resolver``.
"""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from scheduling.config import settings
from scheduling.errors import InvalidRequestError
from scheduling.schemas.availability_schema import AvailabilityTemplate
from scheduling.utils import (
    combine,
    minutes_of_day,
    reference_tz,
    to_reference,
    to_utc,
    wall_time_exists,
)

logger = logging.getLogger(__name__)


def earliest_bookable(template: AvailabilityTemplate, now: datetime) -> datetime:
    """Lead-time cutoff: slots starting before this instant are excluded."""
    return to_utc(now) + timedelta(minutes=template.min_lead_minutes)


def generate_slots(
    template: AvailabilityTemplate,
    day: date,
    duration_minutes: int,
    now: datetime,
    step_minutes: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> list[time]:
    """
    Candidate slot starts for ``day``, ascending.

    Returns an empty list when the weekday is off, the duration exceeds
    the window, or every start falls before ``now + min_lead_minutes``.
    """
    if duration_minutes <= 0:
        raise InvalidRequestError(f"duration_minutes must be > 0, got {duration_minutes}")
    step = step_minutes or settings.scheduling.slot_step_minutes
    tz = tz or reference_tz()

    rule = template.rule_for(day)
    if not rule.is_available:
        return []

    # The grid is walked in wall-clock minutes; fit and lead time are
    # measured on UTC instants so DST days keep real durations.
    window_end = to_utc(combine(day, rule.end_time, tz))
    duration = timedelta(minutes=duration_minutes)
    cutoff = earliest_bookable(template, to_reference(now, tz))

    slots: list[time] = []
    minute = minutes_of_day(rule.start_time)
    last_minute = minutes_of_day(rule.end_time)
    while minute < last_minute:
        wall = combine(day, time(minute // 60, minute % 60), tz)
        minute += step
        if not wall_time_exists(wall):
            continue
        start = to_utc(wall)
        if start + duration > window_end:
            continue
        if start >= cutoff:
            slots.append(wall.time())

    logger.debug(
        "Generated %d slots for %s on %s (duration=%d, step=%d)",
        len(slots), template.owner_id, day.isoformat(), duration_minutes, step,
    )
    return slots
