"""
Offline console demo: walks a host and visitors through the scheduling core.

Uses the real resolver, committer and lifecycle over in-memory stores.
No database, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario cancel
"""

import argparse
import threading
from datetime import date, datetime, timedelta
from typing import Optional

from scheduling.clock import FixedClock
from scheduling.config import settings
from scheduling.errors import SchedulingError
from scheduling.schemas.booking_schema import Booking, EventType
from scheduling.service import SchedulingService
from scheduling.utils import combine, format_time

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

HOST_ID = "host-ana"

WORKWEEK = {
    day: {"is_available": True, "start_time": "09:00", "end_time": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


def next_weekday(after: date, weekday: int = 0) -> date:
    """First date strictly after ``after`` falling on ``weekday`` (0 = Monday)."""
    days_ahead = (weekday - after.weekday() - 1) % 7 + 1
    return after + timedelta(days=days_ahead)


class ConsoleSession:
    """Runs scripted host/visitor interactions in the terminal."""

    SCENARIOS = ("booking", "conflict", "cancel")

    def __init__(self, clock=None) -> None:
        self.service = SchedulingService.in_memory(clock=clock)
        self.event: Optional[EventType] = None
        self.day: Optional[date] = None

    def say(self, who: str, text: str, color: str = GREEN) -> None:
        print(f"{color}{BOLD}[{who}]{RESET} {color}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    # ------------------------------------------------------------------ #
    # Shared setup
    # ------------------------------------------------------------------ #

    def _setup_host(self) -> None:
        template = self.service.update_availability(HOST_ID, WORKWEEK, min_lead_minutes=60)
        self.say(
            "Host",
            f"Available {template.active_days()} days, "
            f"{template.weekly_hours():.1f} h/week, lead time {template.min_lead_minutes} min.",
        )
        self.event = self.service.create_event_type(
            HOST_ID, "Intro call", 30, description="A short first conversation"
        )
        self.say("Host", f"Created event '{self.event.title}' ({self.event.duration_minutes} min).")
        self.day = next_weekday(self.service.clock.now().date())

    def _show_slots(self) -> list[str]:
        resolved = self.service.resolve_available_slots(
            HOST_ID, self.event.id, self.day, self.day
        )
        labels = [format_time(t) for t in resolved.get(self.day, [])]
        self.system_log(f"{self.day.isoformat()}: {len(labels)} free slots {labels[:6]}...")
        return labels

    def _book(self, guest: str, slot: str) -> Optional[Booking]:
        start = combine(self.day, datetime.strptime(slot, "%H:%M").time(), self.service.index.tz)
        request = {
            "event_type_id": self.event.id,
            "guest_name": guest,
            "guest_email": f"{guest.lower().replace(' ', '.')}@mail.io",
            "start_time": start,
            "end_time": start + self.event.duration,
        }
        try:
            booking = self.service.commit_booking(request)
        except SchedulingError as exc:
            self.say(guest, f"Booking failed ({exc.kind}): {exc.message}", RED)
            return None
        self.say(guest, f"Booked {slot} on {self.day.isoformat()}, ref {booking.id}.", BLUE)
        return booking

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def run_scenario(self, scenario: str) -> None:
        if scenario not in self.SCENARIOS:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SCHEDULING CORE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Slot step: {settings.scheduling.slot_step_minutes} min{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

        self._setup_host()
        getattr(self, f"_scenario_{scenario}")()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        upcoming = self.service.list_meetings(HOST_ID, "upcoming")
        print(f"{DIM}  Upcoming meetings: {[b.id for b in upcoming]}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _scenario_booking(self) -> None:
        slots = self._show_slots()
        self._book("Ben Ortiz", slots[0])
        self._show_slots()
        self._book("Cleo Park", slots[0])

    def _scenario_conflict(self) -> None:
        slot = self._show_slots()[2]
        results: dict[str, Optional[Booking]] = {}
        barrier = threading.Barrier(2)

        def attempt(guest: str) -> None:
            barrier.wait(timeout=5)
            results[guest] = self._book(guest, slot)

        threads = [threading.Thread(target=attempt, args=(g,)) for g in ("Dana Lee", "Eli Moss")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        winners = [g for g, b in results.items() if b is not None]
        self.system_log(f"Concurrent attempts on {slot}: winners={winners}")

    def _scenario_cancel(self) -> None:
        slot = self._show_slots()[0]
        booking = self._book("Fay Chen", slot)
        self._show_slots()
        self.service.cancel_booking(booking.id, owner_id=HOST_ID)
        self.say("Host", f"Cancelled {booking.id}.")
        again = self.service.cancel_booking(booking.id, owner_id=HOST_ID)
        self.system_log(f"Second cancel is a no-op: status={again.status.value}")
        self._show_slots()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline scheduling core demo")
    parser.add_argument(
        "--scenario",
        choices=list(ConsoleSession.SCENARIOS),
        default="booking",
        help="Scripted scenario to play",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Pin the clock to an ISO datetime (e.g. 2025-03-14T10:00)",
    )
    args = parser.parse_args(argv)

    clock = FixedClock(datetime.fromisoformat(args.now)) if args.now else None
    ConsoleSession(clock=clock).run_scenario(args.scenario)


if __name__ == "__main__":
    main()
