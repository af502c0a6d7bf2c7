"""Tests for NYC Open Data date parsing."""

from datetime import date

from compliance_report.utils.date_helpers import age_in_days, parse_date


class TestParseDate:
    def test_dob_compact_format(self):
        assert parse_date("20230512") == date(2023, 5, 12)

    def test_socrata_floating_timestamp(self):
        assert parse_date("2023-05-12T00:00:00.000") == date(2023, 5, 12)

    def test_iso_without_millis(self):
        assert parse_date("2023-05-12T08:30:00") == date(2023, 5, 12)

    def test_plain_iso_date(self):
        assert parse_date("2023-05-12") == date(2023, 5, 12)

    def test_permit_us_format(self):
        assert parse_date("05/12/2023") == date(2023, 5, 12)

    def test_timezone_offset(self):
        assert parse_date("2023-05-12T00:00:00+00:00") == date(2023, 5, 12)

    def test_surrounding_whitespace(self):
        assert parse_date("  20230512 ") == date(2023, 5, 12)

    def test_empty_and_none(self):
        assert parse_date("") is None
        assert parse_date("   ") is None
        assert parse_date(None) is None

    def test_garbage_returns_none(self):
        assert parse_date("N/A") is None
        assert parse_date("2023-13-45") is None


class TestAgeInDays:
    def test_elapsed_days(self):
        assert age_in_days(date(2026, 5, 15), date(2026, 6, 1)) == 17

    def test_future_date_is_zero(self):
        assert age_in_days(date(2026, 7, 1), date(2026, 6, 1)) == 0

    def test_unknown_date(self):
        assert age_in_days(None, date(2026, 6, 1)) is None
