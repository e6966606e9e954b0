"""
Tests for the interval model helpers.
"""

from datetime import date, datetime

import pendulum
import pytest

from chairbook.domain.intervals import (
    Interval,
    clock_to_minutes,
    day_key,
    minutes_to_clock,
    overlaps,
)

TZ = "America/Sao_Paulo"


class TestInterval:
    """Tests for Interval."""

    def test_create_valid_interval(self):
        """Test creating a valid interval."""
        interval = Interval(540, 585)

        assert interval.duration_minutes() == 45
        assert str(interval) == "09:00 - 09:45"

    @pytest.mark.parametrize("start,end", [(600, 600), (600, 540), (-15, 30), (1430, 1445)])
    def test_invalid_interval_raises_error(self, start, end):
        """Empty, inverted or out-of-day intervals are rejected."""
        with pytest.raises(ValueError, match="must satisfy"):
            Interval(start, end)

    def test_interval_may_end_at_midnight(self):
        """An interval can run until the end of the day."""
        assert Interval(1380, 1440).duration_minutes() == 60


class TestOverlaps:
    """Tests for the half-open overlap predicate."""

    def test_overlapping_intervals(self):
        a = Interval(540, 720)
        b = Interval(660, 840)

        assert overlaps(a, b)
        assert overlaps(b, a)
        assert a.overlaps(b)

    def test_touching_intervals_do_not_overlap(self):
        """One interval ending exactly when the other starts is not a conflict."""
        a = Interval(600, 645)
        b = Interval(645, 690)

        assert not overlaps(a, b)
        assert not overlaps(b, a)

    def test_contained_interval_overlaps(self):
        assert overlaps(Interval(540, 1140), Interval(600, 615))

    def test_disjoint_intervals(self):
        assert not overlaps(Interval(540, 600), Interval(700, 760))


class TestDayKey:
    """Tests for day key normalisation."""

    def test_same_day_at_different_times_gives_same_key(self):
        """Only the calendar date matters, not the time of day."""
        morning = pendulum.datetime(2024, 11, 25, 0, 1, tz=TZ)
        evening = pendulum.datetime(2024, 11, 25, 23, 59, tz=TZ)

        assert day_key(morning, TZ) == day_key(evening, TZ) == date(2024, 11, 25)

    def test_plain_date_is_kept(self):
        assert day_key(date(2024, 11, 25), TZ) == date(2024, 11, 25)

    def test_naive_datetime_uses_its_own_date(self):
        assert day_key(datetime(2024, 11, 25, 23, 59), TZ) == date(2024, 11, 25)

    def test_aware_datetime_is_converted_to_shop_timezone(self):
        """02:00 UTC is still the previous evening in Sao Paulo."""
        utc_value = pendulum.datetime(2024, 11, 25, 2, 0, tz="UTC")

        assert day_key(utc_value, TZ) == date(2024, 11, 24)

    def test_iso_date_string(self):
        assert day_key("2024-11-25", TZ) == date(2024, 11, 25)

    def test_key_is_plain_date(self):
        """Keys compare and hash like plain dates regardless of the input type."""
        key = day_key(pendulum.datetime(2024, 11, 25, 12, tz=TZ), TZ)

        assert type(key) is date
        assert {key: "x"}[date(2024, 11, 25)] == "x"

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            day_key(20241125, TZ)


class TestClockConversion:
    """Tests for HH:MM conversions."""

    def test_minutes_to_clock(self):
        assert minutes_to_clock(0) == "00:00"
        assert minutes_to_clock(555) == "09:15"
        assert minutes_to_clock(1095) == "18:15"
        assert minutes_to_clock(1440) == "24:00"

    def test_clock_to_minutes(self):
        assert clock_to_minutes("09:00") == 540
        assert clock_to_minutes("19:00") == 1140
        assert clock_to_minutes("24:00") == 1440

    def test_round_trip_for_every_minute(self):
        """Every minute of the day survives a round trip."""
        for minute in range(1440):
            clock = minutes_to_clock(minute)
            assert clock_to_minutes(clock) == minute
            assert minutes_to_clock(clock_to_minutes(clock)) == clock

    @pytest.mark.parametrize("value", ["9:00", "09:60", "25:00", "24:01", "0900", "09:00 ", "", "ab:cd"])
    def test_invalid_clock_strings(self, value):
        with pytest.raises(ValueError):
            clock_to_minutes(value)

    @pytest.mark.parametrize("value", [-1, 1441, 9.5, True])
    def test_invalid_minutes(self, value):
        with pytest.raises(ValueError):
            minutes_to_clock(value)
