"""
Slot calendar generation

Builds the grid shown by the date picker: for every day in the horizon, the
30 minute slots between the opening hour and 18:00, each flagged as booked when
any selected provider already holds that time on that date.
"""

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional, Protocol

from ..shared.validators import SLOT_TIME_FORMAT

SLOT_MINUTES = 30
CLOSING_HOUR = 18


class HasBookedSlots(Protocol):
    booked_slots: Mapping[str, Iterable[str]]


@dataclass(frozen=True)
class Slot:
    time: str
    is_booked: bool


@dataclass
class DaySlots:
    date: str
    day: date
    slots: list[Slot] = field(default_factory=list)

    def free_times(self) -> list[str]:
        return [slot.time for slot in self.slots if not slot.is_booked]

    def is_free(self, time: str) -> bool:
        return time in self.free_times()


def format_slot_date(day: date) -> str:
    """Date key used by booked slot maps: day/month/year without padding"""
    return f"{day.day}/{day.month}/{day.year}"


def format_slot_time(moment: datetime) -> str:
    return moment.strftime(SLOT_TIME_FORMAT)


def horizon_end(today: date, months: int) -> date:
    """Last day of the month `months - 1` months after today's month"""
    month_index = today.month - 1 + months - 1
    year = today.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, monthrange(year, month)[1])


def booked_times(providers: Iterable[HasBookedSlots], slot_date: str) -> set[str]:
    """Union of the times any provider holds on one date"""
    taken: set[str] = set()
    for provider in providers:
        taken.update(provider.booked_slots.get(slot_date, ()))
    return taken


def generate_slot_calendar(
    providers: Iterable[HasBookedSlots],
    months: int = 12,
    start_hour: int = 9,
    today: Optional[date] = None,
) -> list[DaySlots]:
    """
    Materialize the slot calendar from today through the end of the horizon.

    Args:
        providers: selected providers, each exposing booked_slots {"D/M/Y": [times]}
        months: horizon length in calendar months, the current month included
        start_hour: first slot of the day (9 for multi-provider booking, 0 otherwise)
        today: first day of the calendar, defaults to the current date

    Returns:
        One DaySlots per day. With no providers every day has an empty slot list.
    """
    if months < 1:
        raise ValueError("months must be at least 1")
    if not 0 <= start_hour < CLOSING_HOUR:
        raise ValueError(f"start_hour must be between 0 and {CLOSING_HOUR - 1}")

    providers = list(providers)
    today = today or date.today()
    last_day = horizon_end(today, months)

    calendar: list[DaySlots] = []
    day = today
    while day <= last_day:
        slot_date = format_slot_date(day)
        entry = DaySlots(date=slot_date, day=day)

        if providers:
            taken = booked_times(providers, slot_date)
            moment = datetime.combine(day, datetime.min.time()).replace(hour=start_hour)
            closing = moment.replace(hour=CLOSING_HOUR, minute=0)
            while moment < closing:
                time = format_slot_time(moment)
                entry.slots.append(Slot(time=time, is_booked=time in taken))
                moment += timedelta(minutes=SLOT_MINUTES)

        calendar.append(entry)
        day += timedelta(days=1)

    return calendar
