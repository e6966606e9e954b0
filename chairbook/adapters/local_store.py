"""
Local booking store kept in memory and optionally persisted to a JSON file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from filelock import FileLock, Timeout

from ..domain.availability import find_conflicts
from ..domain.exceptions import BookingNotFoundError, SchedulingConflict, StoreError
from ..domain.intervals import DayKey
from ..domain.models import Booking, Service, ShopConfig, default_services, default_shop_config
from ..locks import DayLocks

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 10


class LocalBookingStore:
    """
    Store used on a single device or in tests.

    All state lives in memory. When a path is given, the state is reloaded
    from it before every read and every change, and written back after every
    change. Changes run under an exclusive lock on ``<path>.lock``, so several
    processes sharing the file see each other's bookings. Inserts are checked
    for overlaps under that lock, which makes this store the final arbiter for
    slots taken by concurrent sessions sharing it.
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        seed_config: ShopConfig | None = None,
        seed_services: Sequence[Service] | None = None,
    ):
        """
        Initialize the store.

        Args:
            path: Optional JSON file backing the store
            seed_config: Configuration used when no file state exists yet
            seed_services: Catalogue used when no file state exists yet
        """
        self.path = Path(path) if path else None
        self._file_lock = FileLock(f"{self.path}.lock") if self.path else None
        self._day_locks = DayLocks()
        self._config: ShopConfig = seed_config or default_shop_config()
        self._services: Dict[str, Service] = {
            service.id: service
            for service in (seed_services if seed_services is not None else default_services())
        }
        self._bookings: Dict[str, Booking] = {}
        self._load()

    def _load(self) -> None:
        """Load state from the JSON file if it exists."""
        if self.path is None or not self.path.exists():
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = ShopConfig.from_record(data["config"]) if data.get("config") else self._config
            services = [Service.from_record(record) for record in data.get("services", [])]
            bookings = [Booking.from_record(record) for record in data.get("bookings", [])]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise StoreError(f"Could not read booking store {self.path}: {exc}") from exc

        self._config = config
        self._services = {service.id: service for service in services}
        self._bookings = {booking.id: booking for booking in bookings}
        logger.debug("Loaded %d booking(s) from %s", len(self._bookings), self.path)

    def _save(self) -> None:
        """Write state to the JSON file atomically."""
        if self.path is None:
            return

        data: Dict[str, Any] = {
            "config": self._config.to_record(),
            "services": [service.to_record() for service in self._services.values()],
            "bookings": [booking.to_record() for booking in self._bookings.values()],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.warning("Could not save booking store to %s: %s", self.path, exc)
            raise StoreError(f"Could not write booking store {self.path}: {exc}") from exc

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the file lock and work on the state currently on disk."""
        if self._file_lock is None:
            yield
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file_lock.acquire(timeout=LOCK_TIMEOUT_SECONDS)
        except Timeout as exc:
            raise StoreError(f"Booking store {self.path} is locked by another process") from exc
        except OSError as exc:
            raise StoreError(f"Could not lock booking store {self.path}: {exc}") from exc

        try:
            self._load()
            yield
        finally:
            self._file_lock.release()

    async def fetch_bookings_for_day(self, day: DayKey) -> List[Booking]:
        self._load()
        return [booking for booking in self._bookings.values() if booking.day == day]

    async def insert_booking(self, booking: Booking) -> Booking:
        """
        Persist a new booking unless it overlaps one already stored.

        Raises:
            SchedulingConflict: If another booking took an overlapping slot
            StoreError: If the id is already used or the file cannot be written
        """
        async with self._day_locks.hold(booking.day):
            with self._exclusive():
                if booking.id in self._bookings:
                    raise StoreError(f"Booking id already exists: {booking.id}")

                same_day = [b for b in self._bookings.values() if b.day == booking.day]
                conflicts = find_conflicts(booking.interval, same_day)
                if conflicts:
                    raise SchedulingConflict(
                        f"Slot {booking.interval} on {booking.day.isoformat()} was taken in the meantime",
                        conflicts=conflicts,
                    )

                self._bookings[booking.id] = booking
                try:
                    self._save()
                except StoreError:
                    del self._bookings[booking.id]
                    raise
        return booking

    async def delete_booking(self, booking_id: str) -> None:
        with self._exclusive():
            booking = self._bookings.pop(booking_id, None)
            if booking is None:
                raise BookingNotFoundError(f"No booking with id {booking_id}")
            try:
                self._save()
            except StoreError:
                self._bookings[booking_id] = booking
                raise

    async def fetch_config(self) -> ShopConfig:
        self._load()
        return self._config

    async def upsert_config(self, config: ShopConfig) -> ShopConfig:
        with self._exclusive():
            previous, self._config = self._config, config
            try:
                self._save()
            except StoreError:
                self._config = previous
                raise
        return config

    async def fetch_services(self) -> List[Service]:
        self._load()
        return list(self._services.values())

    async def upsert_service(self, service: Service) -> Service:
        with self._exclusive():
            previous: Optional[Service] = self._services.get(service.id)
            self._services[service.id] = service
            try:
                self._save()
            except StoreError:
                if previous is None:
                    del self._services[service.id]
                else:
                    self._services[service.id] = previous
                raise
        return service

    async def delete_service(self, service_id: str) -> None:
        with self._exclusive():
            service = self._services.pop(service_id, None)
            if service is None:
                raise StoreError(f"No service with id {service_id}")
            try:
                self._save()
            except StoreError:
                self._services[service_id] = service
                raise
