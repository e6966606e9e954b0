"""
Application services for offering, taking and cancelling appointments.

The service coordinates reads and writes through a booking store adapter and
delegates every scheduling decision to the domain-level
``AvailabilityEngine``. The store is described by a small protocol so that the
local JSON store, the remote REST store or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from ..domain.availability import AvailabilityEngine, bookings_for_day
from ..domain.exceptions import AccessDeniedError, SchedulingConflict
from ..domain.intervals import DayKey, day_key, minutes_to_clock
from ..domain.models import Booking, Service, ShopConfig, find_service
from ..locks import DayLocks

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the service."""

    async def fetch_bookings_for_day(self, day: DayKey) -> List[Booking]:
        """Return all bookings filed under ``day``."""

    async def insert_booking(self, booking: Booking) -> Booking:
        """Persist a new booking."""

    async def delete_booking(self, booking_id: str) -> None:
        """Remove a booking by id."""

    async def fetch_config(self) -> ShopConfig:
        """Return the live shop configuration."""

    async def upsert_config(self, config: ShopConfig) -> ShopConfig:
        """Replace the shop configuration."""

    async def fetch_services(self) -> List[Service]:
        """Return the service catalogue."""

    async def upsert_service(self, service: Service) -> Service:
        """Create or replace a catalogue entry."""

    async def delete_service(self, service_id: str) -> None:
        """Remove a catalogue entry."""


class UnknownServiceError(LookupError):
    """Raised when a service id or name is not in the catalogue."""


@dataclass(frozen=True)
class AgendaEntry:
    """A booking of the day together with the service it refers to."""
    booking: Booking
    service: Optional[Service]

    def format_display(self) -> str:
        """
        Format the entry for display.
        Format: HH:MM - HH:MM · Service · Customer (phone)
        """
        booking = self.booking
        service_name = self.service.name if self.service else "(removed service)"
        line = f"{booking.interval} · {service_name} · {booking.customer_name}"
        if booking.customer_phone:
            line += f" ({booking.customer_phone})"
        return line


def _deny_all() -> bool:
    return False


class BookingService:
    """
    Orchestrates store reads, availability checks and store writes.

    Privileged operations (cancellation and catalogue/config administration)
    consult ``is_authorized``; by default nothing is authorised.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        *,
        is_authorized: Callable[[], bool] | None = None,
    ) -> None:
        self._store = store
        self._is_authorized = is_authorized or _deny_all
        self._day_locks = DayLocks()

    async def available_slots(self, service_id: str, date) -> List[int]:
        """Read the live state and compute the offerable start times."""
        config = await self._store.fetch_config()
        service = await self.get_service(service_id)
        key = day_key(date, config.timezone)
        bookings = await self._store.fetch_bookings_for_day(key)
        return AvailabilityEngine(config).compute_slots(service, key, bookings)

    async def book(
        self,
        *,
        service_id: str,
        date,
        start: int,
        customer_name: str,
        customer_phone: str = "",
        notes: str = "",
    ) -> Booking:
        """
        Validate a chosen slot against fresh data and write the booking.

        Raises:
            SchedulingConflict: If the slot is no longer available
            StoreError: If the store cannot be read or written
        """
        config = await self._store.fetch_config()
        engine = AvailabilityEngine(config)
        service = await self.get_service(service_id)
        key = day_key(date, config.timezone)

        async with self._day_locks.hold(key):
            bookings = await self._store.fetch_bookings_for_day(key)
            engine.validate_booking(service, key, start, bookings).raise_for_conflict()

            booking = Booking.create(
                service=service,
                day=key,
                start=start,
                customer_name=customer_name,
                customer_phone=customer_phone,
                notes=notes,
                timezone=config.timezone,
            )
            try:
                stored = await self._store.insert_booking(booking)
            except SchedulingConflict:
                logger.info("Store rejected booking at %s on %s", minutes_to_clock(start), key)
                raise

        logger.info("Booked %s on %s at %s", service.name, key, minutes_to_clock(start))
        return stored

    async def cancel(self, booking_id: str) -> None:
        """Delete a booking; requires authorisation."""
        self._require_authorized("cancel bookings")
        await self._store.delete_booking(booking_id)
        logger.info("Cancelled booking %s", booking_id)

    async def day_agenda(self, date) -> List[AgendaEntry]:
        """Bookings of a day in start order, with their services."""
        config = await self._store.fetch_config()
        key = day_key(date, config.timezone)
        bookings = await self._store.fetch_bookings_for_day(key)
        services = {service.id: service for service in await self._store.fetch_services()}
        return [
            AgendaEntry(booking=booking, service=services.get(booking.service_id))
            for booking in bookings_for_day(bookings, key, config.timezone)
        ]

    async def get_config(self) -> ShopConfig:
        return await self._store.fetch_config()

    async def list_services(self) -> List[Service]:
        return await self._store.fetch_services()

    async def get_service(self, identifier: str) -> Service:
        """Resolve a service by id or name."""
        service = find_service(await self._store.fetch_services(), identifier)
        if service is None:
            raise UnknownServiceError(f"Unknown service: '{identifier}'")
        return service

    async def add_service(self, name: str, duration_minutes: int, price) -> Service:
        self._require_authorized("edit the service catalogue")
        service = Service.create(name, duration_minutes, price)
        return await self._store.upsert_service(service)

    async def remove_service(self, identifier: str) -> None:
        self._require_authorized("edit the service catalogue")
        service = await self.get_service(identifier)
        await self._store.delete_service(service.id)

    async def update_config(self, config: ShopConfig) -> ShopConfig:
        """Validate and store a new shop configuration."""
        self._require_authorized("change the shop configuration")
        return await self._store.upsert_config(config.validate())

    def _require_authorized(self, action: str) -> None:
        if not self._is_authorized():
            raise AccessDeniedError(f"Not authorised to {action}")
