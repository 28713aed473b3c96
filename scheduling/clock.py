"""
Clock abstraction for everything that depends on "now".

Lead-time filtering and upcoming/past splits read the current time
through a Clock so tests can pin it.
"""

from datetime import datetime, timedelta, tzinfo
from typing import Optional

from scheduling.utils import reference_tz, shift, to_reference


class SystemClock:
    """Wall-clock time in the reference zone."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz or reference_tz()

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """A clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, at: datetime, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz or reference_tz()
        self._now = to_reference(at, self.tz)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        self._now = shift(self._now, timedelta(**kwargs))
        return self._now
