"""
Maintenance Service - scheduled and operator jobs over the report stores.

- age_out_reports: move verified pins older than the window to cold storage
- recalculate_stats: authoritative full recompute of the stats snapshot
- purge_reports_after: delete every pin added on or after a date
- consolidate_live_reports: re-key legacy live records by address key
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from app.core.settings import settings
from app.services.errors import MaintenanceError, ValidationFailed
from app.services.stats import reported_count
from app.services.stores.base import LIVE_TREES, VERIFIED, ColdStore, Record, ReportStore
from app.utils.address import make_address_key
from app.utils.dates import is_same_utc_day, is_within_window, parse_timestamp, to_iso, utc_now, window_start

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class MaintenanceService:
    def __init__(
        self,
        reports: ReportStore,
        cold: ColdStore,
        window_days: int = 7,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.reports = reports
        self.cold = cold
        self.window_days = window_days
        self.clock = clock

    def age_out_reports(self) -> Dict:
        """
        Move verified pins whose addedAt is strictly older than the window
        into the cold store, then roll the stats: today_pins = 0,
        week_pins -= aged count, total_pins unchanged.

        A pin already present in the cold store (re-run after a partial
        failure) is not copied again but is still removed from the live tree.

        Returns:
            Dict with aged, already_cold and the updated stats

        Raises:
            MaintenanceError: Any copy/remove failed; the run stops there and
                              stats are left untouched
        """
        now = self.clock()
        cutoff = window_start(self.window_days, now)
        live = self.reports.list(VERIFIED)

        aged = 0
        already_cold = 0
        for report_id, record in live.items():
            added_at = parse_timestamp((record or {}).get("addedAt"))
            if added_at is None:
                logger.warning(f"⚠️ Verified report {report_id} has no readable addedAt, skipping")
                continue
            if not added_at < cutoff:
                continue

            try:
                if self.cold.exists(report_id):
                    already_cold += 1
                else:
                    self.cold.put(report_id, dict(record, agedAt=to_iso(now)))
                self.reports.remove(VERIFIED, report_id)
            except Exception as e:
                raise MaintenanceError(
                    f"Aging aborted at report {report_id} after moving {aged} pin(s): {e}", cause=e
                )
            aged += 1

        def _roll(current: Record) -> Record:
            return {
                "total_pins": int(current.get("total_pins") or 0),
                "today_pins": 0,
                "week_pins": max(0, int(current.get("week_pins") or 0) - aged),
            }

        try:
            stats = self.reports.update_stats(_roll)
        except Exception as e:
            raise MaintenanceError(f"Aged {aged} pin(s) but the stats update failed: {e}", cause=e)

        logger.info(f"✅ Aging complete: {aged} pin(s) moved to cold storage ({already_cold} already there)")
        return {"aged": aged, "already_cold": already_cold, "stats": stats}

    def recalculate_stats(self) -> Dict:
        """
        Recompute the snapshot from scratch and overwrite it in one write.

        total_pins sums reportedCount over cold and live (pending + verified)
        reports; today_pins and week_pins use live timestamps only.
        """
        now = self.clock()
        try:
            cold = self.cold.list()
            live: List[Record] = []
            for tree in LIVE_TREES:
                live.extend(record for record in self.reports.list(tree).values() if record)

            total = sum(reported_count(r) for r in cold.values() if r) + sum(reported_count(r) for r in live)
            today = sum(reported_count(r) for r in live if is_same_utc_day(r.get("addedAt"), now))
            week = sum(reported_count(r) for r in live if is_within_window(r.get("addedAt"), self.window_days, now))

            snapshot = {"total_pins": total, "today_pins": today, "week_pins": week}
            self.reports.write_stats(snapshot)
        except Exception as e:
            raise MaintenanceError(f"Stats recalculation failed: {e}", cause=e)

        logger.info(f"✅ Stats recalculated: {snapshot}")
        return {"message": "Stats recalculated successfully", "stats": snapshot}

    def purge_reports_after(self, date: str, confirm: Callable[[int], bool] = lambda count: True) -> Dict:
        """
        Delete every live and cold pin whose addedAt is on or after `date`.

        Args:
            date: "YYYY-MM-DD" or a full ISO-8601 timestamp
            confirm: Called with the number of matching pins; returning
                     False cancels the purge

        Raises:
            ValidationFailed: Unparseable date
            MaintenanceError: A delete failed
        """
        cutoff = parse_timestamp(date)
        if cutoff is None:
            raise ValidationFailed(
                f'Invalid date format: {date}. Please use ISO 8601 format '
                f'(e.g., "2024-10-25" or "2024-10-25T12:30:00.000Z")'
            )

        def _matches(record: Optional[Record]) -> bool:
            added_at = parse_timestamp((record or {}).get("addedAt"))
            return added_at is not None and added_at >= cutoff

        live_matches: List[Tuple[str, str]] = [
            (tree, report_id)
            for tree in LIVE_TREES
            for report_id, record in self.reports.list(tree).items()
            if _matches(record)
        ]
        cold_matches = [report_id for report_id, record in self.cold.list().items() if _matches(record)]
        total = len(live_matches) + len(cold_matches)
        deleted = {"live": 0, "cold": 0}

        if total == 0:
            return {"message": "No pins found to delete", "deleted": deleted}
        if not confirm(total):
            return {"message": "Deletion cancelled by user", "deleted": deleted}

        try:
            for tree, report_id in live_matches:
                self.reports.remove(tree, report_id)
                deleted["live"] += 1
            deleted["cold"] = self.cold.delete_many(cold_matches)
        except Exception as e:
            raise MaintenanceError(f"Failed to delete pins: {e}", cause=e)

        self.recalculate_stats()
        logger.info(f"✅ Purged {total} pin(s) added on or after {date}: {deleted}")
        return {"message": f"Successfully deleted {total} pins from {date} onwards", "deleted": deleted}

    def consolidate_live_reports(self, tree: str = VERIFIED, apply: bool = False) -> Dict:
        """
        Re-key records of a live tree by the address key of their address.

        Records sharing a key collapse into one: the most recently added
        record's fields win and reported counts are summed. Dry run unless
        `apply` is set.
        """
        groups: Dict[str, List[Tuple[str, Record]]] = {}
        unkeyable = 0
        for report_id, record in self.reports.list(tree).items():
            key = make_address_key((record or {}).get("address"))
            if not key:
                unkeyable += 1
                continue
            groups.setdefault(key, []).append((report_id, record))

        rekeyed = 0
        for key, entries in groups.items():
            if len(entries) == 1 and entries[0][0] == key:
                continue
            entries.sort(key=lambda entry: parse_timestamp(entry[1].get("addedAt")) or _OLDEST)
            merged = dict(entries[-1][1])
            merged["reported"] = sum(reported_count(record) for _, record in entries)
            rekeyed += 1
            if not apply:
                logger.info(f"Would merge {[report_id for report_id, _ in entries]} into {key}")
                continue
            self.reports.put(tree, key, merged)
            for report_id, _ in entries:
                if report_id != key:
                    self.reports.remove(tree, report_id)

        logger.info(f"Consolidation of {tree}: {rekeyed} key(s) to rewrite, {unkeyable} without address, applied={apply}")
        return {"keys": len(groups), "rekeyed": rekeyed, "unkeyable": unkeyable, "applied": apply}


_maintenance_service: Optional[MaintenanceService] = None


def get_maintenance_service() -> MaintenanceService:
    global _maintenance_service
    if _maintenance_service is None:
        from app.services.stores.registry import get_stores

        stores = get_stores()
        _maintenance_service = MaintenanceService(
            reports=stores.reports,
            cold=stores.cold,
            window_days=settings.AGING_WINDOW_DAYS,
        )
    return _maintenance_service
