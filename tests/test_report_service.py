"""
Tests for report_service.py - the intake pipeline.
"""

import pytest
from unittest.mock import Mock, patch

from app.services.errors import (
    AddressNotFound,
    InvalidDate,
    MissingFields,
    ModeratedContent,
    QuotaExceeded,
    UnknownSource,
)
from app.services.stores.base import PENDING, VERIFIED

MAIN_ST = "123 Main St, Springfield, IL 62701, USA"
OAK_AVE = "456 Oak Ave, Springfield, IL 62701, USA"
S1 = "203.0.113.5"
S2 = "198.51.100.7"
MAIN_ST_KEY = "123_main_st_springfield_il_62701_usa"


class TestSubmitCreatesAndMerges:
    """Create-or-merge at the address key."""

    def test_new_report_created_pending(self, report_service, stores, submission):
        result = report_service.submit_report(submission(image_path="reports/pending/a.jpg"), S1)

        assert result.created is True
        assert result.message == "Data logged and saved successfully"
        assert result.formatted_address == MAIN_ST
        assert result.report_id == MAIN_ST_KEY

        record = stores.reports.get(PENDING, MAIN_ST_KEY)
        assert record["reported"] == 1
        assert record["address"] == MAIN_ST
        assert record["additionalInfo"] == "fine"
        assert record["imagePath"] == "reports/pending/a.jpg"
        assert (record["lat"], record["lng"]) == (39.7817, -89.6501)

    def test_same_address_twice_merges(self, report_service, stores, submission):
        """Two submissions of one place leave one record with count 2."""
        report_service.submit_report(submission(), S1)
        result = report_service.submit_report(submission(address="123 MAIN ST!!", note="still there"), S2)

        assert result.created is False
        assert result.message == "Location updated successfully"
        assert list(stores.reports.list(PENDING)) == [MAIN_ST_KEY]
        record = stores.reports.get(PENDING, MAIN_ST_KEY)
        assert record["reported"] == 2
        assert record["additionalInfo"] == "still there"

    def test_merge_keeps_image_unless_new_one_supplied(self, report_service, stores, submission):
        report_service.submit_report(submission(image_path="reports/pending/first.jpg"), S1)
        report_service.submit_report(submission(), S1)
        assert stores.reports.get(PENDING, MAIN_ST_KEY)["imagePath"] == "reports/pending/first.jpg"

        report_service.submit_report(submission(image_path="reports/pending/second.jpg"), S1)
        assert stores.reports.get(PENDING, MAIN_ST_KEY)["imagePath"] == "reports/pending/second.jpg"

    def test_stats_follow_reported_count(self, report_service, stores, submission):
        report_service.submit_report(submission(), S1)
        report_service.submit_report(submission(), S1)
        report_service.submit_report(submission(address="456 Oak Ave"), S2)
        assert stores.reports.read_stats() == {"total_pins": 3, "today_pins": 3, "week_pins": 3}

    def test_published_intake_writes_verified_tree(self, report_service, stores, submission):
        report_service.submit_report(submission(image_url="https://img.example/a.jpg"), S1, publish=True)

        assert stores.reports.list(PENDING) == {}
        record = stores.reports.get(VERIFIED, MAIN_ST_KEY)
        assert record["imageUrl"] == "https://img.example/a.jpg"
        assert "imagePath" not in record

    def test_stats_failure_does_not_fail_submission(self, report_service, stores, submission):
        with patch.object(stores.reports, "update_stats", side_effect=RuntimeError("rtdb down")):
            result = report_service.submit_report(submission(), S1)
        assert result.created is True
        assert stores.reports.get(PENDING, MAIN_ST_KEY) is not None


class TestSubmitGates:
    """Each gate rejects with its own reason and stores nothing."""

    def test_missing_fields(self, report_service, submission):
        with pytest.raises(MissingFields) as exc_info:
            report_service.submit_report(submission(address=""), S1)
        assert exc_info.value.message == "Missing required fields: addedAt and address"

        with pytest.raises(MissingFields):
            report_service.submit_report(submission(added_at=""), S1)

    def test_address_that_sanitizes_to_nothing(self, report_service, submission):
        with pytest.raises(MissingFields):
            report_service.submit_report(submission(address="<b></b>"), S1)

    def test_malformed_date(self, report_service, stores, submission):
        with pytest.raises(InvalidDate) as exc_info:
            report_service.submit_report(submission(added_at="2024-10-25"), S1)
        assert "Must be ISO 8601 format" in exc_info.value.message
        assert stores.rate_limits.records == {}

    def test_stale_date_rejected_before_quota(self, report_service, stores, submission):
        with pytest.raises(InvalidDate) as exc_info:
            report_service.submit_report(submission(added_at="2024-10-24T23:59:59.999Z"), S1)
        assert "today's date" in exc_info.value.message
        assert stores.rate_limits.records == {}

    def test_unknown_source(self, report_service, stores, submission):
        with pytest.raises(UnknownSource):
            report_service.submit_report(submission(), None)
        assert stores.reports.list(PENDING) == {}

    def test_moderated_note_archived_not_stored(self, report_service, stores, submission):
        with pytest.raises(ModeratedContent):
            report_service.submit_report(submission(note="you idiots"), S1)

        assert stores.reports.list(PENDING) == {}
        (entry,) = stores.moderation_log.entries
        assert entry["additionalInfo"] == "you idiots"
        assert entry["address"] == "123 Main St"
        assert S1 not in str(entry)

    def test_ungeocodable_address(self, report_service, stores, submission):
        with pytest.raises(AddressNotFound):
            report_service.submit_report(submission(address="Nowhere Land"), S1)
        assert stores.reports.list(PENDING) == {}
        assert stores.reports.read_stats()["total_pins"] == 0

    def test_quota_checked_before_moderation_and_geocoding(self, report_service, submission):
        for _ in range(3):
            report_service.submit_report(submission(), S1)

        report_service.geocoder = Mock(wraps=report_service.geocoder)
        report_service.moderator = Mock(wraps=report_service.moderator)
        with pytest.raises(QuotaExceeded):
            report_service.submit_report(submission(), S1)
        report_service.geocoder.validate.assert_not_called()
        report_service.moderator.screen.assert_not_called()


class TestScenario:
    def test_three_reports_then_quota_then_other_source(self, report_service, stores, submission):
        """S1 reports 123 Main St three times, is blocked on the fourth; S2 still gets through."""
        for _ in range(3):
            report_service.submit_report(submission(address="123 Main St", note="fine"), S1)
        assert stores.reports.get(PENDING, MAIN_ST_KEY)["reported"] == 3

        with pytest.raises(QuotaExceeded):
            report_service.submit_report(submission(address="123 Main St", note="fine"), S1)
        assert stores.reports.get(PENDING, MAIN_ST_KEY)["reported"] == 3

        result = report_service.submit_report(submission(address="456 Oak Ave", note="fine"), S2)
        assert result.created is True
        assert result.formatted_address == OAK_AVE

    def test_quota_resets_next_day(self, report_service, clock, submission):
        for _ in range(3):
            report_service.submit_report(submission(), S1)
        clock.advance(days=1)
        assert report_service.submit_report(submission(), S1).created is False
