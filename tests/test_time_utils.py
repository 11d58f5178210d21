"""Tests for the gig date/time parsing helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from able_gigs.shared.time_utils import (
    build_gig_window,
    parse_gig_date,
    parse_iso_datetime,
    to_naive_utc,
)

GIG_DAY = date(2030, 6, 1)


class TestParseGigDate:
    def test_plain_date(self):
        assert parse_gig_date("2030-06-01") == GIG_DAY

    def test_ignores_time_suffix(self):
        assert parse_gig_date("2030-06-01T00:00:00.000Z") == GIG_DAY

    def test_rejects_other_formats(self):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            parse_gig_date("01/06/2030")


class TestBuildGigWindow:
    def test_range_with_to(self):
        start, end, hours = build_gig_window(GIG_DAY, "10:00 to 14:30")
        assert start == datetime(2030, 6, 1, 10, 0)
        assert end == datetime(2030, 6, 1, 14, 30)
        assert hours == 4.5

    def test_range_with_dash(self):
        _, _, hours = build_gig_window(GIG_DAY, "18:00-22:00")
        assert hours == 4

    def test_range_crossing_midnight_ends_next_day(self):
        start, end, hours = build_gig_window(GIG_DAY, "22:00 - 02:00")
        assert end == start + timedelta(hours=4)
        assert end.date() == date(2030, 6, 2)
        assert hours == 4

    def test_single_time_books_two_hours(self):
        start, end, hours = build_gig_window(GIG_DAY, "13:15")
        assert start == datetime(2030, 6, 1, 13, 15)
        assert hours == 2

    def test_no_time_defaults_to_morning(self):
        start, end, hours = build_gig_window(GIG_DAY, None)
        assert start == datetime(2030, 6, 1, 9, 0)
        assert end == datetime(2030, 6, 1, 11, 0)
        assert hours == 2

    def test_invalid_clock_raises(self):
        with pytest.raises(ValueError):
            build_gig_window(GIG_DAY, "25:00-26:00")


class TestIsoDatetimes:
    def test_zulu_is_naive_utc(self):
        assert parse_iso_datetime("2030-06-01T09:00:00Z") == datetime(2030, 6, 1, 9, 0)

    def test_offset_is_converted(self):
        assert parse_iso_datetime("2030-06-01T11:00:00+02:00") == datetime(2030, 6, 1, 9, 0)

    def test_naive_is_unchanged(self):
        value = datetime(2030, 6, 1, 9, 0)
        assert to_naive_utc(value) is value

    def test_aware_loses_tzinfo(self):
        aware = datetime(2030, 6, 1, 9, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert to_naive_utc(aware) == datetime(2030, 6, 1, 14, 0)
