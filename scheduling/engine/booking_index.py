"""
Read-side view over the booking store.

Every read is a single synchronous call; a failing store surfaces as
DependencyFailureError and is not retried here.
"""

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Optional, TypeVar

from scheduling.errors import DependencyFailureError, SchedulingError
from scheduling.schemas.booking_schema import Booking
from scheduling.stores.base import BookingStore
from scheduling.utils import TimeRange, reference_tz, to_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_store(operation: str, func: Callable[..., T], *args: Any) -> T:
    """Invoke a collaborator, translating its failures into DependencyFailureError."""
    try:
        return func(*args)
    except SchedulingError:
        raise
    except Exception as exc:
        logger.error("Store call %s failed: %s", operation, exc)
        raise DependencyFailureError(f"{operation} failed: {exc}") from exc


class BookingIndex:
    """Queries confirmed (non-cancelled) bookings for a host."""

    def __init__(self, store: BookingStore, tz: Optional[tzinfo] = None) -> None:
        self._store = store
        self.tz = tz or reference_tz()

    def list_bookings(self, owner_id: str, time_range: TimeRange) -> list[Booking]:
        """All live bookings of ``owner_id`` intersecting ``time_range``, by start."""
        found = call_store("list_bookings", self._store.list_bookings, owner_id, time_range)
        live = [b for b in found if not b.is_cancelled and b.interval.overlaps(time_range)]
        return sorted(live, key=lambda b: to_utc(b.start_time))

    def for_day(self, owner_id: str, day: date) -> list[Booking]:
        return self.list_bookings(owner_id, TimeRange.for_day(day, self.tz))

    def conflicts(self, owner_id: str, start: datetime, end: datetime) -> list[Booking]:
        return self.list_bookings(owner_id, TimeRange(start, end))
