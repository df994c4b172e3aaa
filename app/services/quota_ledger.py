"""
Quota Ledger - per-source daily submission counters.

Each (bucket, source) pair maps to one record keyed by a salted SHA-256
hash, so raw client addresses never reach storage. Every check is a single
atomic read-modify-write:

    new_count = count + 1 if stored date == today else 1

and the request is over quota when new_count > limit. Records carry an
`expiresAt` for passive TTL expiry; prune_stale() sweeps stores without it.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from app.core.settings import settings
from app.services.errors import QuotaExceeded, UnknownSource
from app.services.stores.base import RateLimitStore
from app.utils.dates import start_of_next_day, today_utc, utc_now
from app.utils.security import hash_source_identifier, short_hash

logger = logging.getLogger(__name__)

SUBMISSION_BUCKET = "pin"


class QuotaLedger:
    def __init__(self, store: RateLimitStore, salt: str = "", clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.salt = salt
        self.clock = clock

    def source_hash(self, bucket: str, source_identifier: str) -> str:
        return hash_source_identifier(bucket, source_identifier, self.salt)

    def check_and_increment(self, bucket: str, source_identifier: Optional[str], limit: int) -> bool:
        """
        Count one request against the source's daily quota.

        Args:
            bucket: Quota scope (e.g. "pin")
            source_identifier: Client address; None/empty is rejected
            limit: Requests allowed per UTC day

        Returns:
            True if this request exceeds the limit

        Raises:
            UnknownSource: No source identifier (nothing is written)
        """
        if not source_identifier:
            raise UnknownSource()

        now = self.clock()
        today = today_utc(now)
        bucket_hash = self.source_hash(bucket, source_identifier)

        def _increment(current: Optional[Dict]) -> Dict:
            current = current or {}
            stored_date = current.get("date") or today
            count = int(current.get("count") or 0)
            new_count = count + 1 if stored_date == today else 1
            return {
                "bucket": bucket,
                "date": today,
                "count": new_count,
                "expiresAt": start_of_next_day(now) + timedelta(days=1),
            }

        record = self.store.update(bucket_hash, _increment)
        exceeded = record["count"] > limit
        if exceeded:
            logger.info(f"⚠️ Quota exceeded: bucket={bucket} source={short_hash(bucket_hash)} count={record['count']}")
        return exceeded

    def enforce(self, bucket: str, source_identifier: Optional[str], limit: int) -> None:
        """Raise QuotaExceeded when check_and_increment reports the limit is exceeded."""
        if self.check_and_increment(bucket, source_identifier, limit):
            raise QuotaExceeded()

    def prune_stale(self) -> int:
        """Delete ledger records from previous UTC days. Returns the number removed."""
        removed = self.store.prune(today_utc(self.clock()))
        logger.info(f"✅ Rate ledger sweep removed {removed} record(s)")
        return removed


_ledger: Optional[QuotaLedger] = None


def get_quota_ledger() -> QuotaLedger:
    global _ledger
    if _ledger is None:
        from app.services.stores.registry import get_stores

        if not settings.RATE_SALT:
            logger.warning("⚠️ RATE_SALT is not set; source hashes are unsalted")
        _ledger = QuotaLedger(get_stores().rate_limits, salt=settings.RATE_SALT)
    return _ledger
