"""
Error taxonomy for the scheduling core.

NotFound, InvalidRequest and SlotUnavailable are expected, user-facing
outcomes. DependencyFailure wraps a failed store call and is transient
from the caller's point of view; the core never retries it.
"""


class SchedulingError(Exception):
    """Base class for every error the scheduling core raises."""

    kind = "scheduling_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    """Unknown event type, host template or booking."""

    kind = "not_found"


class InvalidRequestError(SchedulingError):
    """Malformed or internally inconsistent request."""

    kind = "invalid_request"


class SlotUnavailableError(SchedulingError):
    """The requested interval is not free.

    Raised for availability rules, lead time, a conflicting booking, or a
    lost commit race reported by the store.
    """

    kind = "slot_unavailable"


class DependencyFailureError(SchedulingError):
    """A collaborator (store read or write) failed."""

    kind = "dependency_failure"
