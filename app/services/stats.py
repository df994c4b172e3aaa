"""
Running stats helpers shared by the intake, verification and maintenance services.

The snapshot is a cache of sum(reportedCount) over live and cold reports;
incremental adjustments keep it close, recalculate_stats() makes it exact.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Tuple

from app.services.stores.base import Record, ReportStore
from app.utils.dates import is_same_utc_day, is_within_window


def reported_count(record: Optional[Record]) -> int:
    """Stored `reported` count, defaulting to 1 when absent or unreadable."""
    if not record:
        return 1
    try:
        count = int(record.get("reported") or 1)
    except (TypeError, ValueError):
        return 1
    return max(count, 1)


def adjust_stats(
    reports: ReportStore,
    delta: int,
    added_at: Any,
    now: datetime,
    window_days: int = 7,
) -> Record:
    """
    Atomically add `delta` to total_pins, and to today_pins / week_pins when
    `added_at` falls in those windows. Counters never go below zero.
    """
    return shift_stats(reports, [(delta, added_at)], now, window_days)


def shift_stats(
    reports: ReportStore,
    changes: Iterable[Tuple[int, Any]],
    now: datetime,
    window_days: int = 7,
) -> Record:
    """
    Apply several `(delta, added_at)` changes in one stats transaction.

    Used when a count moves between time buckets, e.g. a verified report
    whose addedAt is refreshed: remove it at its old date, add it back at
    the new one.
    """
    total = today = week = 0
    for delta, added_at in changes:
        total += delta
        if is_same_utc_day(added_at, now):
            today += delta
        if is_within_window(added_at, window_days, now):
            week += delta

    def _apply(current: Record) -> Record:
        updated = dict(current)
        updated["total_pins"] = max(0, int(current.get("total_pins") or 0) + total)
        updated["today_pins"] = max(0, int(current.get("today_pins") or 0) + today)
        updated["week_pins"] = max(0, int(current.get("week_pins") or 0) + week)
        return updated

    return reports.update_stats(_apply)
