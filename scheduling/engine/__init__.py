from scheduling.engine.booking_index import BookingIndex
from scheduling.engine.committer import BookingCommitter
from scheduling.engine.lifecycle import BookingLifecycle, LifecycleTrigger
from scheduling.engine.resolver import AvailabilityResolver
from scheduling.engine.slot_generator import generate_slots

__all__ = [
    "generate_slots",
    "BookingIndex",
    "AvailabilityResolver",
    "BookingCommitter",
    "BookingLifecycle",
    "LifecycleTrigger",
]
