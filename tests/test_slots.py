"""Tests for the slot calendar."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from mribook.booking.slots import booked_times, generate_slot_calendar, horizon_end


@dataclass
class StubProvider:
    booked_slots: dict = field(default_factory=dict)


class TestHorizon:
    """Tests for the last day of the booking horizon."""

    def test_single_month_ends_this_month(self):
        assert horizon_end(date(2025, 3, 12), 1) == date(2025, 3, 31)

    def test_horizon_crosses_year_end(self):
        assert horizon_end(date(2025, 12, 15), 2) == date(2026, 1, 31)

    def test_twelve_months_from_january(self):
        assert horizon_end(date(2025, 1, 31), 12) == date(2025, 12, 31)

    def test_leap_february(self):
        assert horizon_end(date(2024, 2, 10), 1) == date(2024, 2, 29)


class TestGenerateSlotCalendar:
    """Tests for generate_slot_calendar."""

    def test_one_entry_per_day_through_end_of_month(self):
        calendar = generate_slot_calendar([StubProvider()], months=1, today=date(2025, 3, 12))
        assert len(calendar) == 20
        assert calendar[0].date == "12/3/2025"
        assert calendar[-1].date == "31/3/2025"

    def test_dates_are_not_zero_padded(self):
        calendar = generate_slot_calendar([StubProvider()], months=1, today=date(2025, 1, 30))
        assert [day.date for day in calendar] == ["30/1/2025", "31/1/2025"]

    def test_half_hour_slots_from_start_hour_until_six(self):
        day = generate_slot_calendar([StubProvider()], months=1, today=date(2025, 3, 31))[0]
        times = [slot.time for slot in day.slots]
        assert len(times) == 18
        assert times[0] == "09:00 AM"
        assert times[1] == "09:30 AM"
        assert times[-1] == "05:30 PM"
        assert "06:00 PM" not in times

    def test_start_hour_zero_covers_whole_morning(self):
        day = generate_slot_calendar([StubProvider()], months=1, start_hour=0, today=date(2025, 3, 31))[0]
        assert len(day.slots) == 36
        assert day.slots[0].time == "12:00 AM"

    def test_today_is_generated_in_full(self):
        calendar = generate_slot_calendar([StubProvider()], months=1, today=date.today())
        assert calendar[0].day == date.today()
        assert len(calendar[0].slots) == 18

    def test_marks_exactly_the_booked_times(self):
        provider = StubProvider({"12/3/2025": ["10:00 AM", "02:30 PM"]})
        calendar = generate_slot_calendar([provider], months=1, today=date(2025, 3, 12))

        booked = {slot.time for slot in calendar[0].slots if slot.is_booked}
        assert booked == {"10:00 AM", "02:30 PM"}
        assert not any(slot.is_booked for day in calendar[1:] for slot in day.slots)

    def test_booked_for_any_selected_provider(self):
        first = StubProvider({"12/3/2025": ["10:00 AM"]})
        second = StubProvider({"12/3/2025": ["11:00 AM"]})
        day = generate_slot_calendar([first, second], months=1, today=date(2025, 3, 12))[0]

        assert not day.is_free("10:00 AM")
        assert not day.is_free("11:00 AM")
        assert day.is_free("10:30 AM")
        assert len(day.free_times()) == 16

    def test_no_providers_gives_empty_days(self):
        calendar = generate_slot_calendar([], months=1, today=date(2025, 3, 30))
        assert len(calendar) == 2
        assert all(day.slots == [] for day in calendar)

    @pytest.mark.parametrize("months", [0, -1])
    def test_rejects_empty_horizon(self, months):
        with pytest.raises(ValueError):
            generate_slot_calendar([StubProvider()], months=months)

    def test_rejects_start_hour_after_closing(self):
        with pytest.raises(ValueError):
            generate_slot_calendar([StubProvider()], start_hour=18)


def test_booked_times_unions_providers():
    providers = [StubProvider({"1/1/2025": ["09:00 AM"]}), StubProvider({"1/1/2025": ["09:30 AM"]})]
    assert booked_times(providers, "1/1/2025") == {"09:00 AM", "09:30 AM"}
    assert booked_times(providers, "2/1/2025") == set()
