"""
Core business logic for offering and accepting appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no storage, no I/O). Both entry points
recompute everything from their arguments on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .exceptions import SchedulingConflict
from .intervals import MINUTES_PER_DAY, Interval, day_key, minutes_to_clock, overlaps
from .models import Booking, Service, ShopConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCheck:
    """
    Outcome of re-validating a proposed booking right before it is written.

    A failed check is an expected result, not an error: the caller should
    recompute the slots and offer them again.
    """
    start: int
    end: int
    conflicts: Tuple[Booking, ...] = ()
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return not self.conflicts and self.reason is None

    @property
    def interval(self) -> Interval | None:
        """The proposed interval, or ``None`` when it does not fit in a day."""
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            return None
        return Interval(self.start, self.end)

    def raise_for_conflict(self) -> None:
        """Raise ``SchedulingConflict`` if the proposed booking was rejected."""
        if self.ok:
            return
        if self.conflicts:
            taken = ", ".join(str(booking.interval) for booking in self.conflicts)
            message = f"The slot starting at {minutes_to_clock(self.start)} overlaps existing booking(s): {taken}"
        else:
            message = self.reason
        raise SchedulingConflict(message, conflicts=self.conflicts, reason=self.reason)


def find_conflicts(interval: Interval, bookings: Iterable[Booking]) -> List[Booking]:
    """Return the bookings whose interval overlaps ``interval``."""
    return [booking for booking in bookings if overlaps(interval, booking.interval)]


def bookings_for_day(bookings: Iterable[Booking], day, timezone: str) -> List[Booking]:
    """Bookings falling on ``day``, ordered by start time."""
    key = day_key(day, timezone)
    return sorted((booking for booking in bookings if booking.day == key), key=lambda b: b.start)


class AvailabilityEngine:
    """
    Computes offerable start times for a service and validates a chosen one.

    Algorithm for slot enumeration:
    1. Reject the day if the shop is closed on its weekday
    2. Step from opening time by the slot size while the service still ends
       before closing time
    3. Keep every candidate whose interval overlaps none of the day's bookings
    """

    def __init__(self, config: ShopConfig):
        self.config = config.validate()

    def compute_slots(
        self,
        service: Service,
        date,
        bookings: Sequence[Booking],
    ) -> List[int]:
        """
        Find all start offsets at which ``service`` can be booked on ``date``.

        Args:
            service: Service to be booked
            date: Target day (any value accepted by ``day_key``)
            bookings: Existing bookings; may include other days

        Returns:
            Start offsets in minutes since midnight, ascending
        """
        config = self.config
        key = day_key(date, config.timezone)

        if key.weekday() not in config.active_weekdays:
            logger.debug("Shop closed on %s, no slots offered", key)
            return []

        day_bookings = [booking for booking in bookings if booking.day == key]
        duration = service.duration_minutes

        slots: List[int] = []
        current = config.opening
        while current + duration <= config.closing:
            candidate = Interval(current, current + duration)
            if not any(overlaps(candidate, booking.interval) for booking in day_bookings):
                slots.append(current)
            current += config.slot_minutes

        logger.debug(
            "Computed %d slot(s) for %s on %s against %d booking(s)",
            len(slots), service.name, key, len(day_bookings),
        )
        return slots

    def validate_booking(
        self,
        service: Service,
        date,
        start: int,
        bookings: Sequence[Booking],
    ) -> BookingCheck:
        """
        Re-check a proposed start time against the live booking set.

        Uses the same rules as ``compute_slots`` so that anything that was
        offered is accepted unless the booking set changed in the meantime.
        """
        config = self.config
        key = day_key(date, config.timezone)
        end = start + service.duration_minutes

        if key.weekday() not in config.active_weekdays:
            return BookingCheck(start, end, reason=f"The shop is closed on {key.isoformat()}")

        if start < config.opening or end > config.closing:
            return BookingCheck(
                start,
                end,
                reason=(
                    f"{service.name} starting at {minutes_to_clock(start)} does not fit "
                    f"within opening hours {config.open_window}"
                ),
            )

        if (start - config.opening) % config.slot_minutes:
            return BookingCheck(
                start,
                end,
                reason=f"{minutes_to_clock(start)} is not on the {config.slot_minutes}-minute slot grid",
            )

        day_bookings = [booking for booking in bookings if booking.day == key]
        conflicts = find_conflicts(Interval(start, end), day_bookings)
        if conflicts:
            logger.info(
                "Proposed booking %s-%s on %s conflicts with %d booking(s)",
                minutes_to_clock(start), minutes_to_clock(end), key, len(conflicts),
            )
        return BookingCheck(start, end, conflicts=tuple(conflicts))


def compute_available_slots(
    config: ShopConfig,
    service: Service,
    date,
    bookings: Sequence[Booking],
) -> List[int]:
    """Start offsets at which ``service`` can be booked on ``date``."""
    return AvailabilityEngine(config).compute_slots(service, date, bookings)


def validate_proposed_booking(
    config: ShopConfig,
    service: Service,
    date,
    start_minutes: int,
    bookings: Sequence[Booking],
) -> BookingCheck:
    """Re-validate a proposed booking; inspect ``.ok`` or call ``raise_for_conflict()``."""
    return AvailabilityEngine(config).validate_booking(service, date, start_minutes, bookings)
