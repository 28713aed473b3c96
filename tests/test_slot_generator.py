"""Tests for weekly-template slot generation."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from scheduling.engine.slot_generator import earliest_bookable, generate_slots
from scheduling.errors import InvalidRequestError
from tests.conftest import FRIDAY, MONDAY, NOW, SUNDAY, UTC, at, hhmm, make_template

NEW_YORK = ZoneInfo("America/New_York")


class TestWindowWalk:
    def test_full_monday_thirty_minute_event(self):
        slots = generate_slots(make_template(), MONDAY, 30, NOW)
        assert len(slots) == 16
        assert hhmm(slots)[0] == "09:00"
        assert hhmm(slots)[-1] == "16:30"

    def test_slots_are_ascending_on_the_grid(self):
        slots = hhmm(generate_slots(make_template(), MONDAY, 30, NOW))
        assert slots == sorted(slots)
        assert all(s.endswith((":00", ":30")) for s in slots)

    def test_hour_event_last_start_fits_window(self):
        slots = hhmm(generate_slots(make_template(), MONDAY, 60, NOW))
        assert len(slots) == 15
        assert slots[-1] == "16:00"

    def test_step_is_independent_of_duration(self):
        slots = hhmm(generate_slots(make_template(), MONDAY, 90, NOW))
        assert slots[:3] == ["09:00", "09:30", "10:00"]
        assert slots[-1] == "15:30"

    def test_duration_off_grid_rounds_to_grid_starts(self):
        slots = hhmm(generate_slots(make_template(), MONDAY, 45, NOW))
        assert slots[-1] == "16:00"
        assert "16:15" not in slots

    def test_window_end_not_on_grid(self):
        template = make_template(
            days={"monday": {"is_available": True, "start_time": "09:00", "end_time": "10:45"}}
        )
        assert hhmm(generate_slots(template, MONDAY, 30, NOW)) == ["09:00", "09:30", "10:00"]

    def test_custom_step(self):
        slots = hhmm(generate_slots(make_template(), MONDAY, 30, NOW, step_minutes=15))
        assert slots[:3] == ["09:00", "09:15", "09:30"]
        assert slots[-1] == "16:30"
        assert len(slots) == 31

    def test_duration_longer_than_window_is_empty(self):
        assert generate_slots(make_template(), MONDAY, 9 * 60, NOW) == []

    def test_duration_equal_to_window_gives_single_slot(self):
        assert hhmm(generate_slots(make_template(), MONDAY, 8 * 60, NOW)) == ["09:00"]


class TestUnavailableDays:
    def test_unavailable_weekday_is_empty(self):
        assert generate_slots(make_template(), SUNDAY, 30, NOW) == []

    def test_weekday_missing_from_template_is_unavailable(self):
        assert generate_slots(make_template(), MONDAY + timedelta(days=1), 30, NOW) == []


class TestLeadTime:
    def test_cutoff_is_now_plus_lead(self):
        assert earliest_bookable(make_template(min_lead_minutes=60), NOW) == NOW + timedelta(hours=1)

    def test_same_day_slots_before_cutoff_are_dropped(self):
        now = at(MONDAY, "09:10")
        slots = hhmm(generate_slots(make_template(min_lead_minutes=60), MONDAY, 30, now))
        assert slots[0] == "10:30"

    def test_slot_exactly_at_cutoff_is_included(self):
        now = at(MONDAY, "09:00")
        slots = hhmm(generate_slots(make_template(min_lead_minutes=60), MONDAY, 30, now))
        assert slots[0] == "10:00"

    def test_one_millisecond_past_cutoff_excludes_slot(self):
        now = at(MONDAY, "09:00") + timedelta(milliseconds=1)
        slots = hhmm(generate_slots(make_template(min_lead_minutes=60), MONDAY, 30, now))
        assert slots[0] == "10:30"

    def test_zero_lead_allows_slot_starting_now(self):
        now = at(MONDAY, "12:00")
        slots = hhmm(generate_slots(make_template(min_lead_minutes=0), MONDAY, 30, now))
        assert slots[0] == "12:00"

    def test_lead_spanning_into_next_day(self):
        now = datetime(2025, 3, 16, 20, 0, tzinfo=UTC)
        slots = hhmm(generate_slots(make_template(min_lead_minutes=15 * 60), MONDAY, 30, now))
        assert slots[0] == "11:00"

    def test_past_date_is_empty(self):
        now = at(MONDAY, "18:00") + timedelta(days=7)
        assert generate_slots(make_template(), MONDAY, 30, now) == []

    def test_naive_now_is_read_in_reference_zone(self):
        naive = datetime(2025, 3, 17, 9, 0)
        slots = hhmm(generate_slots(make_template(min_lead_minutes=60), MONDAY, 30, naive))
        assert slots[0] == "10:00"


class TestInputs:
    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(InvalidRequestError):
            generate_slots(make_template(), MONDAY, duration, NOW)

    def test_pure_and_restartable(self):
        template = make_template()
        first = generate_slots(template, MONDAY, 30, NOW)
        second = generate_slots(template, MONDAY, 30, NOW)
        assert first == second

    def test_friday_template_unaffected_by_lead_when_today(self):
        template = make_template(
            days={"friday": {"is_available": True, "start_time": "09:00", "end_time": "12:00"}},
            min_lead_minutes=30,
        )
        # NOW is Friday 10:00 -> cutoff 10:30
        assert hhmm(generate_slots(template, FRIDAY, 30, NOW)) == ["10:30", "11:00", "11:30"]


class TestDaylightSaving:
    """America/New_York springs forward at 02:00 on 2025-03-09 and falls back on 2025-11-02."""

    NIGHT = {"sunday": {"is_available": True, "start_time": "00:00", "end_time": "05:00"}}

    def _slots(self, day, duration=60):
        template = make_template(days=self.NIGHT, min_lead_minutes=0)
        now = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        return hhmm(generate_slots(template, day, duration, now, step_minutes=30, tz=NEW_YORK))

    def test_skipped_wall_times_are_not_offered(self):
        slots = self._slots(date(2025, 3, 9))
        assert "02:00" not in slots
        assert "02:30" not in slots

    def test_fit_uses_elapsed_time_across_the_gap(self):
        # 00:00 EST to 05:00 EDT is four real hours.
        assert self._slots(date(2025, 3, 9)) == [
            "00:00", "00:30", "01:00", "01:30", "03:00", "03:30", "04:00",
        ]

    def test_fall_back_day_has_no_duplicates(self):
        slots = self._slots(date(2025, 11, 2))
        assert len(slots) == len(set(slots))
        assert slots[0] == "00:00"
        # 00:00 EDT to 05:00 EST is six real hours, so 04:00 still fits.
        assert slots[-1] == "04:00"

    def test_lead_cutoff_compares_instants(self):
        template = make_template(days=self.NIGHT, min_lead_minutes=60)
        now = datetime(2025, 3, 9, 6, 0, tzinfo=UTC)  # 01:00 EST
        slots = hhmm(generate_slots(template, date(2025, 3, 9), 30, now, step_minutes=30, tz=NEW_YORK))
        # Cutoff 07:00Z is 03:00 EDT.
        assert slots[0] == "03:00"
