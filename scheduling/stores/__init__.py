from scheduling.stores.base import (
    BookingStore,
    EventStore,
    InsertOutcome,
    InsertStatus,
    StoreConflictError,
    TemplateStore,
)
from scheduling.stores.memory import (
    InMemoryBookingStore,
    InMemoryEventStore,
    InMemoryTemplateStore,
)

__all__ = [
    "BookingStore", "EventStore", "TemplateStore",
    "InsertOutcome", "InsertStatus", "StoreConflictError",
    "InMemoryBookingStore", "InMemoryEventStore", "InMemoryTemplateStore",
]
