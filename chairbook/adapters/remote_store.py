"""
REST client for a remotely hosted booking store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import requests

from ..domain.exceptions import BookingNotFoundError, SchedulingConflict, StoreError
from ..domain.intervals import DayKey
from ..domain.models import Booking, Service, ShopConfig

logger = logging.getLogger(__name__)


class RemoteBookingStore:
    """
    Client for a booking backend exposing a small JSON API.

    Endpoints (relative to ``base_url``):
    - GET    /bookings?day=YYYY-MM-DD
    - POST   /bookings
    - DELETE /bookings/{id}
    - GET    /config, PUT /config
    - GET    /services, PUT /services/{id}, DELETE /services/{id}

    The backend is expected to reject overlapping inserts with 409 Conflict,
    which this client surfaces as ``SchedulingConflict``. Every other failure
    is a ``StoreError``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float = 10,
    ):
        """
        Initialize the remote store client.

        Args:
            base_url: Root URL of the booking backend
            api_key: Optional bearer token
            session: Optional pre-configured requests session
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise StoreError(f"Booking store request failed: {e}") from e

        if response.status_code == 409:
            detail = self._error_detail(response)
            raise SchedulingConflict(detail or "The booking store rejected an overlapping booking")

        if response.status_code == 404 and method == "DELETE" and path.startswith("/bookings/"):
            raise BookingNotFoundError(f"No booking at {path}")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.warning("%s %s returned %s", method, url, response.status_code)
            raise StoreError(f"Booking store returned an error: {e}") from e

        return response

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("message") or "")
        return ""

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Booking store returned invalid JSON: {e}") from e

    def _parse(self, parser, payload: Any):
        try:
            return parser(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Booking store returned a malformed record: {e}") from e

    # Blocking operations

    def _get_bookings(self, day: DayKey) -> List[Booking]:
        response = self._request("GET", "/bookings", params={"day": day.isoformat()})
        records = self._json(response)
        bookings = [self._parse(Booking.from_record, record) for record in records]
        # The backend filters by day already; keep only matching keys regardless
        return [booking for booking in bookings if booking.day == day]

    def _post_booking(self, booking: Booking) -> Booking:
        response = self._request("POST", "/bookings", json=booking.to_record())
        if not response.content:
            return booking
        return self._parse(Booking.from_record, self._json(response))

    def _get_config(self) -> ShopConfig:
        return self._parse(ShopConfig.from_record, self._json(self._request("GET", "/config")))

    def _put_config(self, config: ShopConfig) -> ShopConfig:
        self._request("PUT", "/config", json=config.to_record())
        return config

    def _get_services(self) -> List[Service]:
        records = self._json(self._request("GET", "/services"))
        return [self._parse(Service.from_record, record) for record in records]

    def _put_service(self, service: Service) -> Service:
        self._request("PUT", f"/services/{service.id}", json=service.to_record())
        return service

    # Store protocol

    async def fetch_bookings_for_day(self, day: DayKey) -> List[Booking]:
        return await asyncio.to_thread(self._get_bookings, day)

    async def insert_booking(self, booking: Booking) -> Booking:
        return await asyncio.to_thread(self._post_booking, booking)

    async def delete_booking(self, booking_id: str) -> None:
        await asyncio.to_thread(self._request, "DELETE", f"/bookings/{booking_id}")

    async def fetch_config(self) -> ShopConfig:
        return await asyncio.to_thread(self._get_config)

    async def upsert_config(self, config: ShopConfig) -> ShopConfig:
        return await asyncio.to_thread(self._put_config, config)

    async def fetch_services(self) -> List[Service]:
        return await asyncio.to_thread(self._get_services)

    async def upsert_service(self, service: Service) -> Service:
        return await asyncio.to_thread(self._put_service, service)

    async def delete_service(self, service_id: str) -> None:
        await asyncio.to_thread(self._request, "DELETE", f"/services/{service_id}")

    def test_connection(self) -> Dict[str, Any]:
        """
        Check that the backend is reachable by reading its configuration.

        Raises:
            StoreError: If the backend cannot be reached
        """
        return self._get_config().to_record()
