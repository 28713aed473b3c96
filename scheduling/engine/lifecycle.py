"""
Finite state machine for a booking's lifecycle.

    PENDING --committed--> COMMITTED --cancelled--> CANCELLED
    PENDING --rejected---> REJECTED
    CANCELLED --cancelled--> CANCELLED   (repeat cancellation is a no-op)

Every transition must be declared. A booking never returns to PENDING
and its interval is never edited after COMMITTED.

Usage:
    lc = BookingLifecycle()
    lc.transition(LifecycleTrigger.COMMITTED)
    assert lc.current_state == BookingStatus.COMMITTED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from scheduling.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class LifecycleTrigger(str, Enum):
    """Events that move a booking between states."""
    COMMITTED = "committed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass
class Transition:
    from_state: BookingStatus
    to_state: BookingStatus
    trigger: LifecycleTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingStatus
    entered_at: datetime
    trigger: Optional[LifecycleTrigger] = None
    reason: Optional[str] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingLifecycle:
    """Tracks one booking attempt from validation to its terminal state."""

    TRANSITIONS: list[Transition] = [
        Transition(BookingStatus.PENDING, BookingStatus.COMMITTED, LifecycleTrigger.COMMITTED),
        Transition(BookingStatus.PENDING, BookingStatus.REJECTED, LifecycleTrigger.REJECTED),
        Transition(BookingStatus.COMMITTED, BookingStatus.CANCELLED, LifecycleTrigger.CANCELLED),
        Transition(BookingStatus.CANCELLED, BookingStatus.CANCELLED, LifecycleTrigger.CANCELLED),
    ]

    TERMINAL_STATES = frozenset({BookingStatus.REJECTED, BookingStatus.CANCELLED})

    def __init__(self, initial: BookingStatus = BookingStatus.PENDING) -> None:
        self._current_state = initial
        self._history: list[StateEntry] = [
            StateEntry(state=initial, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingStatus:
        return self._current_state

    def transition(
        self, trigger: LifecycleTrigger, reason: Optional[str] = None
    ) -> BookingStatus:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                    reason=reason,
                ))
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[LifecycleTrigger]:
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in self.TERMINAL_STATES
