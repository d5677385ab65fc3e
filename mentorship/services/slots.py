"""Slot generation from a mentor's weekly availability template.

Everything here is pure: no database access, no clock. Times of day are
handled as minutes since midnight and only formatted to ``HH:mm`` on the way
out.
"""

from collections.abc import Iterable
from datetime import date
from typing import NamedTuple, Protocol

MINUTES_PER_DAY = 24 * 60


class Slot(NamedTuple):
    start_time: str
    end_time: str


class WindowLike(Protocol):
    day_of_week: int
    start_time: str
    end_time: str


def parse_hhmm(value: str | None) -> int | None:
    """Return minutes since midnight for ``HH:mm``, or None if malformed."""
    if not value or not isinstance(value, str):
        return None

    hours, sep, minutes = value.strip().partition(':')
    if not sep or not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2:
        return None

    total = int(hours) * 60 + int(minutes)
    if int(minutes) >= 60 or total > MINUTES_PER_DAY:
        return None
    return total


def format_hhmm(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def day_of_week(slot_date: date) -> int:
    """Day index with 0 = Sunday, matching the stored windows."""
    return (slot_date.weekday() + 1) % 7


def iterate_window_slots(start_minutes: int, end_minutes: int, duration_minutes: int) -> Iterable[Slot]:
    if duration_minutes <= 0:
        return

    current = start_minutes
    while current + duration_minutes <= end_minutes:
        yield Slot(format_hhmm(current), format_hhmm(current + duration_minutes))
        current += duration_minutes


def generate_slots(
    windows: Iterable[WindowLike],
    slot_duration_minutes: int,
    slot_date: date,
) -> list[Slot]:
    """Candidate slots for ``slot_date``.

    Windows are walked in stored order and slots are emitted ascending within
    each window. Overlapping windows yield duplicate slots; nothing is sorted
    or de-duplicated across windows. A window with unparsable or inverted
    times contributes nothing.
    """
    weekday = day_of_week(slot_date)
    slots: list[Slot] = []

    for window in windows:
        if window.day_of_week != weekday:
            continue

        start_minutes = parse_hhmm(window.start_time)
        end_minutes = parse_hhmm(window.end_time)
        if start_minutes is None or end_minutes is None or start_minutes >= end_minutes:
            continue

        slots.extend(iterate_window_slots(start_minutes, end_minutes, slot_duration_minutes))

    return slots
