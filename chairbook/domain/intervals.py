"""
Interval model for minute offsets within a single shop day.

Every booking and every candidate slot is a half-open interval
``[start, end)`` measured in minutes since local midnight. Bookings are
bucketed by a day key that depends only on the calendar date in the shop
timezone, never on the time of day of the value it was derived from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

import pendulum

MINUTES_PER_DAY = 1440
DEFAULT_TIMEZONE = "America/Sao_Paulo"

DayKey = date

_CLOCK_PATTERN = re.compile(r"(\d{2}):(\d{2})")


@dataclass(frozen=True)
class Interval:
    """
    Half-open minute interval within one day.

    Invariant: 0 <= start < end <= 1440.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValueError(
                f"Interval [{self.start}, {self.end}) must satisfy 0 <= start < end <= {MINUTES_PER_DAY}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval overlaps with another."""
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{minutes_to_clock(self.start)} - {minutes_to_clock(self.end)}"


def overlaps(a: Interval, b: Interval) -> bool:
    """
    Half-open overlap test.

    Intervals that only touch (one ends when the other begins) do not overlap.
    """
    return a.start < b.end and b.start < a.end


def day_key(value, timezone: str = DEFAULT_TIMEZONE) -> DayKey:
    """
    Normalise a date-like value to the calendar day it falls on in the shop.

    Args:
        value: date, naive or aware datetime, or an ISO 8601 string
        timezone: IANA timezone of the shop

    Returns:
        A plain ``datetime.date``; the time-of-day component never matters.
    """
    if isinstance(value, str):
        parsed = pendulum.parse(value, tz=timezone)
        if not isinstance(parsed, datetime):
            raise ValueError(f"Could not parse a calendar date from: {value!r}")
        value = parsed

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = pendulum.instance(value).in_timezone(timezone)
        return date(value.year, value.month, value.day)

    if isinstance(value, date):
        return date(value.year, value.month, value.day)

    raise TypeError(f"Cannot derive a day key from {type(value).__name__}")


def minutes_to_clock(minutes: int) -> str:
    """Render minutes since midnight as HH:MM (1440 renders as 24:00)."""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValueError(f"Minutes must be an integer, got {minutes!r}")
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minutes must be between 0 and {MINUTES_PER_DAY}, got {minutes}")
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def clock_to_minutes(clock: str) -> int:
    """Parse an HH:MM string into minutes since midnight."""
    match = _CLOCK_PATTERN.fullmatch(clock) if isinstance(clock, str) else None
    if not match:
        raise ValueError(f"Time must use the HH:MM format, got {clock!r}")

    hours, mins = int(match.group(1)), int(match.group(2))
    if (hours, mins) == (24, 0):
        return MINUTES_PER_DAY
    if hours > 23 or mins > 59:
        raise ValueError(f"Time out of range: {clock!r}")
    return hours * 60 + mins
