"""
Tests for maintenance_service.py - aging, stats recalculation, purge and consolidation.
"""

import pytest
from unittest.mock import patch

from app.services.errors import MaintenanceError, ValidationFailed
from app.services.stores.base import PENDING, VERIFIED

EIGHT_DAYS_AGO = "2024-10-17T15:00:00.000Z"
SEVEN_DAYS_AGO = "2024-10-18T15:00:00.000Z"
YESTERDAY = "2024-10-24T09:00:00.000Z"
TODAY = "2024-10-25T10:00:00.000Z"


def _pin(added_at, reported=1, address="somewhere"):
    return {"addedAt": added_at, "address": address, "reported": reported}


class TestAgeOutReports:
    """Moving old verified pins to cold storage."""

    def test_window_boundary_and_stats_roll(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "old", _pin(EIGHT_DAYS_AGO))
        stores.reports.put(VERIFIED, "boundary", _pin(SEVEN_DAYS_AGO))
        stores.reports.put(VERIFIED, "fresh", _pin(TODAY))
        stores.reports.write_stats({"total_pins": 5, "today_pins": 2, "week_pins": 3})

        result = maintenance_service.age_out_reports()

        assert result["aged"] == 1
        assert sorted(stores.reports.list(VERIFIED)) == ["boundary", "fresh"]
        cold = stores.cold.list()
        assert list(cold) == ["old"]
        assert cold["old"]["addedAt"] == EIGHT_DAYS_AGO
        assert cold["old"]["agedAt"] == "2024-10-25T15:00:00.000Z"
        assert stores.reports.read_stats() == {"total_pins": 5, "today_pins": 0, "week_pins": 2}

    def test_pending_reports_are_not_aged(self, maintenance_service, stores):
        stores.reports.put(PENDING, "waiting", _pin(EIGHT_DAYS_AGO))
        assert maintenance_service.age_out_reports()["aged"] == 0
        assert stores.reports.get(PENDING, "waiting") is not None
        assert stores.cold.list() == {}

    def test_already_cold_pin_is_only_removed(self, maintenance_service, stores):
        stores.cold.put("old", {"addedAt": EIGHT_DAYS_AGO, "address": "original", "reported": 4})
        stores.reports.put(VERIFIED, "old", _pin(EIGHT_DAYS_AGO))

        result = maintenance_service.age_out_reports()

        assert result["already_cold"] == 1
        assert stores.cold.list()["old"]["reported"] == 4
        assert stores.reports.list(VERIFIED) == {}

    def test_unreadable_timestamp_is_skipped(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "broken", _pin("not a date"))
        assert maintenance_service.age_out_reports()["aged"] == 0
        assert stores.reports.get(VERIFIED, "broken") is not None

    def test_failure_aborts_and_leaves_stats(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "old", _pin(EIGHT_DAYS_AGO))
        stores.reports.write_stats({"total_pins": 5, "today_pins": 2, "week_pins": 3})

        with patch.object(stores.cold, "put", side_effect=RuntimeError("firestore down")):
            with pytest.raises(MaintenanceError):
                maintenance_service.age_out_reports()

        assert stores.reports.get(VERIFIED, "old") is not None
        assert stores.reports.read_stats() == {"total_pins": 5, "today_pins": 2, "week_pins": 3}


class TestRecalculateStats:
    def test_counts_cold_pending_and_verified(self, maintenance_service, stores):
        stores.cold.put("archived", _pin("2024-09-01T00:00:00.000Z", reported=4))
        stores.reports.put(PENDING, "p", _pin(TODAY))
        stores.reports.put(VERIFIED, "today", _pin(TODAY, reported=2))
        stores.reports.put(VERIFIED, "yesterday", _pin(YESTERDAY))
        stores.reports.put(VERIFIED, "boundary", _pin(SEVEN_DAYS_AGO))
        stores.reports.put(VERIFIED, "legacy", {"addedAt": EIGHT_DAYS_AGO, "address": "x"})

        result = maintenance_service.recalculate_stats()

        assert result["message"] == "Stats recalculated successfully"
        expected = {"total_pins": 10, "today_pins": 3, "week_pins": 5}
        assert result["stats"] == expected
        assert stores.reports.read_stats() == expected

    def test_idempotent(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "today", _pin(TODAY, reported=3))
        first = maintenance_service.recalculate_stats()["stats"]
        assert maintenance_service.recalculate_stats()["stats"] == first

    def test_overwrites_drifted_snapshot(self, maintenance_service, stores):
        stores.reports.write_stats({"total_pins": 99, "today_pins": 42, "week_pins": 7})
        maintenance_service.recalculate_stats()
        assert stores.reports.read_stats() == {"total_pins": 0, "today_pins": 0, "week_pins": 0}

    def test_store_failure_is_maintenance_error(self, maintenance_service, stores):
        with patch.object(stores.cold, "list", side_effect=RuntimeError("firestore down")):
            with pytest.raises(MaintenanceError):
                maintenance_service.recalculate_stats()


class TestPurgeReportsAfter:
    def test_deletes_matching_pins_everywhere(self, maintenance_service, stores):
        stores.reports.put(PENDING, "p", _pin(TODAY))
        stores.reports.put(VERIFIED, "v_new", _pin(YESTERDAY))
        stores.reports.put(VERIFIED, "v_old", _pin(SEVEN_DAYS_AGO))
        stores.cold.put("c_new", _pin("2024-10-24T00:00:00.000Z"))
        stores.cold.put("c_old", _pin(EIGHT_DAYS_AGO))

        result = maintenance_service.purge_reports_after("2024-10-24")

        assert result["message"] == "Successfully deleted 3 pins from 2024-10-24 onwards"
        assert result["deleted"] == {"live": 2, "cold": 1}
        assert stores.reports.list(PENDING) == {}
        assert list(stores.reports.list(VERIFIED)) == ["v_old"]
        assert list(stores.cold.list()) == ["c_old"]
        assert stores.reports.read_stats()["total_pins"] == 2

    def test_nothing_to_delete(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "v_old", _pin(EIGHT_DAYS_AGO))
        assert maintenance_service.purge_reports_after("2024-10-24")["message"] == "No pins found to delete"

    def test_cancelled(self, maintenance_service, stores):
        stores.reports.put(VERIFIED, "v", _pin(TODAY))
        counts = []

        def _decline(count):
            counts.append(count)
            return False

        result = maintenance_service.purge_reports_after("2024-10-24T00:00:00.000Z", confirm=_decline)

        assert result["message"] == "Deletion cancelled by user"
        assert counts == [1]
        assert stores.reports.get(VERIFIED, "v") is not None

    def test_invalid_date(self, maintenance_service):
        with pytest.raises(ValidationFailed) as exc_info:
            maintenance_service.purge_reports_after("last tuesday")
        assert "Invalid date format: last tuesday" in exc_info.value.message


class TestConsolidateLiveReports:
    def _seed(self, stores):
        stores.reports.put(VERIFIED, "-Nabc1", _pin(YESTERDAY, reported=2, address="12 Elm St, Springfield"))
        stores.reports.put(VERIFIED, "-Nabc2", _pin(TODAY, reported=1, address="12 ELM ST., Springfield"))
        stores.reports.put(VERIFIED, "9_oak_st", _pin(TODAY, address="9 Oak St"))
        stores.reports.put(VERIFIED, "-Nnoaddr", {"addedAt": TODAY})

    def test_dry_run_changes_nothing(self, maintenance_service, stores):
        self._seed(stores)
        result = maintenance_service.consolidate_live_reports()

        assert result == {"keys": 2, "rekeyed": 1, "unkeyable": 1, "applied": False}
        assert len(stores.reports.list(VERIFIED)) == 4

    def test_apply_merges_under_address_key(self, maintenance_service, stores):
        self._seed(stores)
        maintenance_service.consolidate_live_reports(apply=True)

        tree = stores.reports.list(VERIFIED)
        assert sorted(tree) == ["-Nnoaddr", "12_elm_st_springfield", "9_oak_st"]
        merged = tree["12_elm_st_springfield"]
        assert merged["reported"] == 3
        assert merged["address"] == "12 ELM ST., Springfield"
