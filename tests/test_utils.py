"""
Tests for the address, date and security helpers.
"""

from datetime import datetime, timezone

from app.utils.address import make_address_key, sanitize_input
from app.utils.dates import (
    is_date_today_utc,
    is_valid_iso8601,
    is_within_window,
    parse_timestamp,
    to_iso,
)
from app.utils.security import hash_source_identifier, resolve_client_ip

NOW = datetime(2024, 10, 25, 15, 0, 0, tzinfo=timezone.utc)


class TestAddressKey:
    """Tests for make_address_key."""

    def test_case_and_punctuation_collapse_to_same_key(self):
        """Differently cased and punctuated spellings share a key."""
        a = make_address_key("1600 Amphitheatre Pkwy, Mountain View, CA")
        b = make_address_key("1600 AMPHITHEATRE PKWY, MOUNTAIN VIEW, CA!!")
        assert a == b == "1600_amphitheatre_pkwy_mountain_view_ca"

    def test_hyphens_and_whitespace_become_single_underscores(self):
        assert make_address_key("  --Main   St--  ") == "main_st"
        assert make_address_key("Winston-Salem  NC") == "winston_salem_nc"

    def test_truncated_to_200_characters(self):
        assert len(make_address_key("a" * 250)) == 200

    def test_empty_and_non_string_give_empty_key(self):
        assert make_address_key("") == ""
        assert make_address_key(None) == ""
        assert make_address_key(123) == ""
        assert make_address_key("!!!") == ""


class TestSanitizeInput:
    """Tests for sanitize_input."""

    def test_strips_tags_and_quotes(self):
        assert sanitize_input('<b>Hello</b> "world"') == "Hello world"

    def test_trims_and_truncates(self):
        assert sanitize_input("   x   ") == "x"
        assert len(sanitize_input("y" * 600)) == 500

    def test_non_string_is_empty(self):
        assert sanitize_input(None) == ""
        assert sanitize_input(42) == ""


class TestDates:
    """Tests for the strict ISO check and window helpers."""

    def test_strict_iso_format(self):
        assert is_valid_iso8601("2024-10-25T14:30:00.000Z")
        assert not is_valid_iso8601("2024-10-25T14:30:00Z")
        assert not is_valid_iso8601("2024-10-25 14:30:00.000Z")
        assert not is_valid_iso8601(20241025)

    def test_impossible_calendar_date_rejected(self):
        assert not is_valid_iso8601("2024-02-30T10:00:00.000Z")

    def test_today_is_utc_calendar_day(self):
        assert is_date_today_utc("2024-10-25T00:00:00.000Z", NOW)
        assert is_date_today_utc("2024-10-25T23:59:59.999Z", NOW)
        assert not is_date_today_utc("2024-10-24T23:59:59.999Z", NOW)

    def test_to_iso_matches_client_format(self):
        assert to_iso(NOW) == "2024-10-25T15:00:00.000Z"

    def test_parse_timestamp_variants(self):
        assert parse_timestamp("2024-10-25") == datetime(2024, 10, 25, tzinfo=timezone.utc)
        assert parse_timestamp("2024-10-25T12:30:00.000Z") == datetime(2024, 10, 25, 12, 30, tzinfo=timezone.utc)
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None

    def test_window_boundary_is_inclusive(self):
        assert is_within_window("2024-10-18T15:00:00.000Z", 7, NOW)
        assert not is_within_window("2024-10-18T14:59:59.999Z", 7, NOW)


class TestSecurity:
    """Tests for client source resolution and hashing."""

    def test_first_forwarded_entry_wins(self):
        assert resolve_client_ip("203.0.113.5, 10.0.0.1", "10.0.0.2") == "203.0.113.5"

    def test_falls_back_to_connection_address(self):
        assert resolve_client_ip(None, "198.51.100.7") == "198.51.100.7"
        assert resolve_client_ip(" , ", "198.51.100.7") == "198.51.100.7"

    def test_unknown_source(self):
        assert resolve_client_ip(None, None) is None
        assert resolve_client_ip("", "  ") is None

    def test_hash_depends_on_bucket_and_salt(self):
        base = hash_source_identifier("pin", "203.0.113.5", "salt")
        assert len(base) == 64
        assert "203.0.113.5" not in base
        assert base != hash_source_identifier("other", "203.0.113.5", "salt")
        assert base != hash_source_identifier("pin", "203.0.113.5", "pepper")
