"""
Domain models for services, bookings and the shop configuration.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Iterable

from .exceptions import ConfigurationError
from .intervals import (
    DEFAULT_TIMEZONE,
    MINUTES_PER_DAY,
    DayKey,
    Interval,
    clock_to_minutes,
    day_key,
    minutes_to_clock,
)

WEEKDAY_NAMES = {
    0: "Monday",
    1: "Tuesday",
    2: "Wednesday",
    3: "Thursday",
    4: "Friday",
    5: "Saturday",
    6: "Sunday",
}


def _new_id() -> str:
    return str(uuid.uuid4())


# Namespace for catalogue ids derived from service names
_SEED_NAMESPACE = uuid.UUID("5b1f0c7e-3a52-4f6e-9d0b-2c8e4a7f1d63")


def _seed_id(name: str) -> str:
    return str(uuid.uuid5(_SEED_NAMESPACE, name.strip().lower()))


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid price: {value!r}") from exc


@dataclass(frozen=True)
class Service:
    """
    A bookable service from the shop catalogue.

    Invariant: duration is a positive number of minutes, price is not negative.
    """
    id: str
    name: str
    duration_minutes: int
    price: Decimal = Decimal("0")

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Service name must not be empty")
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise ValueError(f"Service duration must be an integer, got {self.duration_minutes!r}")
        if self.duration_minutes <= 0:
            raise ValueError(f"Service duration must be positive, got {self.duration_minutes}")
        price = _to_decimal(self.price)
        if price < 0:
            raise ValueError(f"Service price must not be negative, got {price}")
        object.__setattr__(self, "price", price)

    @classmethod
    def create(cls, name: str, duration_minutes: int, price: Any = 0) -> "Service":
        return cls(id=_new_id(), name=name.strip(), duration_minutes=duration_minutes, price=price)

    @classmethod
    def seed(cls, name: str, duration_minutes: int, price: Any = 0) -> "Service":
        """Catalogue entry whose id depends only on its name, so every process agrees on it."""
        return cls(id=_seed_id(name), name=name.strip(), duration_minutes=duration_minutes, price=price)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "price": str(self.price),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Service":
        return cls(
            id=str(record["id"]),
            name=record["name"],
            duration_minutes=int(record["duration_minutes"]),
            price=record.get("price", "0"),
        )


@dataclass(frozen=True)
class Booking:
    """
    A confirmed appointment.

    The end offset is computed once from the service duration when the
    booking is created and stored as-is, so later edits to the service never
    move an existing booking.
    """
    id: str
    customer_name: str
    customer_phone: str
    day: DayKey
    start: int
    end: int
    service_id: str
    notes: str = ""

    def __post_init__(self):
        # Raises ValueError for an invalid interval
        Interval(self.start, self.end)
        if not isinstance(self.day, date):
            raise ValueError(f"Booking day must be a date, got {self.day!r}")
        if type(self.day) is not date:
            # Day keys are plain dates
            object.__setattr__(self, "day", date(self.day.year, self.day.month, self.day.day))

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @classmethod
    def create(
        cls,
        *,
        service: Service,
        day,
        start: int,
        customer_name: str,
        customer_phone: str = "",
        notes: str = "",
        timezone: str = DEFAULT_TIMEZONE,
    ) -> "Booking":
        """
        Build a new booking for a service starting at ``start`` minutes.

        Args:
            service: The booked service; only its id and current duration are used
            day: Any value accepted by ``day_key``
            start: Start offset in minutes since midnight
            customer_name: Name of the client, required
            customer_phone: Contact phone, optional
            notes: Free-text notes, optional
            timezone: Shop timezone used to normalise ``day``

        Raises:
            ValueError: If the customer name is empty or the interval is invalid
        """
        name = (customer_name or "").strip()
        if not name:
            raise ValueError("Customer name must not be empty")

        return cls(
            id=_new_id(),
            customer_name=name,
            customer_phone=(customer_phone or "").strip(),
            day=day_key(day, timezone),
            start=start,
            end=start + service.duration_minutes,
            service_id=service.id,
            notes=(notes or "").strip(),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "day": self.day.isoformat(),
            "start": self.start,
            "end": self.end,
            "service_id": self.service_id,
            "notes": self.notes,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        return cls(
            id=str(record["id"]),
            customer_name=record["customer_name"],
            customer_phone=record.get("customer_phone") or "",
            day=date.fromisoformat(record["day"]),
            start=int(record["start"]),
            end=int(record["end"]),
            service_id=str(record["service_id"]),
            notes=record.get("notes") or "",
        )


@dataclass(frozen=True)
class ShopConfig:
    """
    Shop-wide scheduling configuration.

    Construction does not validate; ``validate`` is called by every consumer
    that computes a schedule so that a bad configuration fails loudly instead
    of looking like a fully booked day.
    """
    shop_name: str
    slot_minutes: int
    active_weekdays: FrozenSet[int]  # 0=Monday, 6=Sunday
    opening: int
    closing: int
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        object.__setattr__(self, "active_weekdays", frozenset(self.active_weekdays))

    def validate(self) -> "ShopConfig":
        """
        Check the configuration invariants.

        Raises:
            ConfigurationError: If the slot size is not positive, the opening
                hours are out of range or inverted, or a weekday is unknown
        """
        if isinstance(self.slot_minutes, bool) or not isinstance(self.slot_minutes, int) or self.slot_minutes <= 0:
            raise ConfigurationError(f"Slot size must be a positive number of minutes, got {self.slot_minutes!r}")
        for label, value in (("opening", self.opening), ("closing", self.closing)):
            if not isinstance(value, int) or not 0 <= value <= MINUTES_PER_DAY:
                raise ConfigurationError(f"{label} must be between 0 and {MINUTES_PER_DAY} minutes, got {value!r}")
        if self.opening >= self.closing:
            raise ConfigurationError(
                f"Opening time {minutes_to_clock(self.opening)} must be before "
                f"closing time {minutes_to_clock(self.closing)}"
            )
        invalid_days = sorted(day for day in self.active_weekdays if day not in WEEKDAY_NAMES)
        if invalid_days:
            raise ConfigurationError(f"Weekdays must be between 0 and 6, got {invalid_days}")
        return self

    @property
    def open_window(self) -> Interval:
        return Interval(self.opening, self.closing)

    def is_open_on(self, day) -> bool:
        """Check if the shop takes bookings on the weekday of ``day``."""
        return day_key(day, self.timezone).weekday() in self.active_weekdays

    def to_record(self) -> Dict[str, Any]:
        return {
            "shop_name": self.shop_name,
            "slot_minutes": self.slot_minutes,
            "active_weekdays": sorted(self.active_weekdays),
            "opening": minutes_to_clock(self.opening),
            "closing": minutes_to_clock(self.closing),
            "timezone": self.timezone,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ShopConfig":
        return cls(
            shop_name=record.get("shop_name", ""),
            slot_minutes=int(record["slot_minutes"]),
            active_weekdays=frozenset(int(day) for day in record.get("active_weekdays", [])),
            opening=clock_to_minutes(record["opening"]),
            closing=clock_to_minutes(record["closing"]),
            timezone=record.get("timezone") or DEFAULT_TIMEZONE,
        )


def default_shop_config(timezone: str = DEFAULT_TIMEZONE) -> ShopConfig:
    """Opening hours a new shop starts with: Monday-Saturday, 09:00-19:00."""
    return ShopConfig(
        shop_name="Neighbourhood Barbershop",
        slot_minutes=15,
        active_weekdays=frozenset({0, 1, 2, 3, 4, 5}),
        opening=9 * 60,
        closing=19 * 60,
        timezone=timezone,
    )


def default_services() -> list[Service]:
    """Catalogue a new shop starts with."""
    return [
        Service.seed("Men's haircut", 45, "55.00"),
        Service.seed("Beard", 30, "40.00"),
        Service.seed("Haircut + beard", 75, "85.00"),
        Service.seed("Eyebrows", 15, "20.00"),
    ]


def find_service(services: Iterable[Service], identifier: str) -> Service | None:
    """Find a service by id, or by case-insensitive name."""
    catalogue = list(services)
    for service in catalogue:
        if service.id == identifier:
            return service
    for service in catalogue:
        if service.name.lower() == identifier.strip().lower():
            return service
    return None
