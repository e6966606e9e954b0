"""
Tests for the local JSON booking store.
"""

import asyncio
import json
from datetime import date

import pytest

from chairbook.adapters.local_store import LocalBookingStore
from chairbook.domain.exceptions import BookingNotFoundError, SchedulingConflict, StoreError
from chairbook.domain.models import Booking, Service, ShopConfig

MONDAY = date(2024, 11, 25)
TUESDAY = date(2024, 11, 26)

BEARD = Service(id="beard", name="Beard", duration_minutes=30, price="40.00")


def _booking(day: date, start: int, end: int, booking_id: str) -> Booking:
    return Booking(
        id=booking_id,
        customer_name="Client",
        customer_phone="555-0100",
        day=day,
        start=start,
        end=end,
        service_id="beard",
    )


class TestInMemory:
    """Tests for the store without a backing file."""

    def test_seeded_with_defaults(self):
        store = LocalBookingStore()

        config = asyncio.run(store.fetch_config())
        services = asyncio.run(store.fetch_services())

        assert config.opening == 540
        assert len(services) == 4

    def test_bookings_are_bucketed_by_day(self):
        store = LocalBookingStore(seed_services=[BEARD])

        async def scenario():
            await store.insert_booking(_booking(MONDAY, 600, 630, "a"))
            await store.insert_booking(_booking(TUESDAY, 600, 630, "b"))
            return await store.fetch_bookings_for_day(MONDAY)

        assert [b.id for b in asyncio.run(scenario())] == ["a"]

    def test_overlapping_insert_is_rejected(self):
        store = LocalBookingStore(seed_services=[BEARD])
        asyncio.run(store.insert_booking(_booking(MONDAY, 600, 630, "a")))

        with pytest.raises(SchedulingConflict) as excinfo:
            asyncio.run(store.insert_booking(_booking(MONDAY, 615, 645, "b")))

        assert [b.id for b in excinfo.value.conflicts] == ["a"]

    def test_touching_insert_is_accepted(self):
        store = LocalBookingStore(seed_services=[BEARD])

        async def scenario():
            await store.insert_booking(_booking(MONDAY, 600, 630, "a"))
            await store.insert_booking(_booking(MONDAY, 630, 660, "b"))
            return await store.fetch_bookings_for_day(MONDAY)

        assert len(asyncio.run(scenario())) == 2

    def test_duplicate_id_is_rejected(self):
        store = LocalBookingStore(seed_services=[BEARD])
        asyncio.run(store.insert_booking(_booking(MONDAY, 600, 630, "a")))

        with pytest.raises(StoreError, match="already exists"):
            asyncio.run(store.insert_booking(_booking(TUESDAY, 600, 630, "a")))

    def test_delete_unknown_booking(self):
        store = LocalBookingStore()

        with pytest.raises(BookingNotFoundError):
            asyncio.run(store.delete_booking("missing"))


class TestFileBacked:
    """Tests for persistence to a JSON file."""

    def test_state_survives_reload(self, tmp_path):
        path = tmp_path / "data" / "bookings.json"
        store = LocalBookingStore(path, seed_services=[BEARD])

        async def scenario():
            await store.insert_booking(_booking(MONDAY, 600, 630, "a"))
            await store.upsert_config(
                ShopConfig("Renamed", 30, frozenset({1, 2}), 480, 1080, "America/Sao_Paulo")
            )

        asyncio.run(scenario())

        reloaded = LocalBookingStore(path)

        assert [b.id for b in asyncio.run(reloaded.fetch_bookings_for_day(MONDAY))] == ["a"]
        assert asyncio.run(reloaded.fetch_config()).shop_name == "Renamed"
        assert asyncio.run(reloaded.fetch_services()) == [BEARD]

    def test_file_content(self, tmp_path):
        path = tmp_path / "bookings.json"
        store = LocalBookingStore(path, seed_services=[BEARD])

        asyncio.run(store.insert_booking(_booking(MONDAY, 600, 630, "a")))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["bookings"][0]["day"] == "2024-11-25"
        assert data["config"]["opening"] == "09:00"
        assert data["services"][0]["price"] == "40.00"

    def test_delete_is_persisted(self, tmp_path):
        path = tmp_path / "bookings.json"
        store = LocalBookingStore(path, seed_services=[BEARD])

        async def scenario():
            await store.insert_booking(_booking(MONDAY, 600, 630, "a"))
            await store.delete_booking("a")

        asyncio.run(scenario())

        assert asyncio.run(LocalBookingStore(path).fetch_bookings_for_day(MONDAY)) == []

    def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "bookings.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError, match="Could not read"):
            LocalBookingStore(path)

    def test_missing_file_is_created_on_first_change(self, tmp_path):
        path = tmp_path / "bookings.json"
        store = LocalBookingStore(path, seed_services=[BEARD])

        assert not path.exists()
        asyncio.run(store.insert_booking(_booking(MONDAY, 600, 630, "a")))

        assert path.exists()


class TestSharedFile:
    """Tests for two processes sharing one file, modelled by two store instances."""

    def test_second_store_rejects_overlap_written_by_first(self, tmp_path):
        path = tmp_path / "bookings.json"
        first = LocalBookingStore(path, seed_services=[BEARD])
        second = LocalBookingStore(path, seed_services=[BEARD])

        asyncio.run(first.insert_booking(_booking(MONDAY, 600, 645, "a")))

        with pytest.raises(SchedulingConflict) as excinfo:
            asyncio.run(second.insert_booking(_booking(MONDAY, 600, 645, "b")))

        assert [b.id for b in excinfo.value.conflicts] == ["a"]
        stored = asyncio.run(LocalBookingStore(path).fetch_bookings_for_day(MONDAY))
        assert [b.id for b in stored] == ["a"]

    def test_writes_from_both_stores_are_kept(self, tmp_path):
        path = tmp_path / "bookings.json"
        first = LocalBookingStore(path, seed_services=[BEARD])
        second = LocalBookingStore(path, seed_services=[BEARD])

        asyncio.run(first.insert_booking(_booking(MONDAY, 600, 630, "a")))
        asyncio.run(second.insert_booking(_booking(MONDAY, 660, 690, "b")))

        stored = asyncio.run(LocalBookingStore(path).fetch_bookings_for_day(MONDAY))
        assert sorted(b.id for b in stored) == ["a", "b"]

    def test_reads_see_the_other_store(self, tmp_path):
        path = tmp_path / "bookings.json"
        first = LocalBookingStore(path, seed_services=[BEARD])
        second = LocalBookingStore(path, seed_services=[BEARD])

        asyncio.run(first.insert_booking(_booking(MONDAY, 600, 630, "a")))

        assert [b.id for b in asyncio.run(second.fetch_bookings_for_day(MONDAY))] == ["a"]

    def test_delete_by_other_store_is_seen(self, tmp_path):
        path = tmp_path / "bookings.json"
        first = LocalBookingStore(path, seed_services=[BEARD])
        second = LocalBookingStore(path, seed_services=[BEARD])
        asyncio.run(first.insert_booking(_booking(MONDAY, 600, 630, "a")))

        asyncio.run(second.delete_booking("a"))

        assert asyncio.run(first.fetch_bookings_for_day(MONDAY)) == []
        asyncio.run(first.insert_booking(_booking(MONDAY, 600, 630, "c")))
        assert [b.id for b in asyncio.run(second.fetch_bookings_for_day(MONDAY))] == ["c"]
