"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import (
    AvailabilityEngine,
    BookingCheck,
    compute_available_slots,
    validate_proposed_booking,
)
from .intervals import Interval, clock_to_minutes, day_key, minutes_to_clock, overlaps
from .models import Booking, Service, ShopConfig

__all__ = [
    "AvailabilityEngine",
    "Booking",
    "BookingCheck",
    "Interval",
    "Service",
    "ShopConfig",
    "clock_to_minutes",
    "compute_available_slots",
    "day_key",
    "minutes_to_clock",
    "overlaps",
    "validate_proposed_booking",
]
