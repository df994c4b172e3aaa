"""
Report Service - intake pipeline for anonymous sighting reports.

Gates, in order (each one rejects the submission):
1. Required fields (address, addedAt)
2. addedAt is strict ISO-8601 UTC and falls on the current UTC day
3. Daily quota per source (before any paid external call)
4. Moderation of the note
5. Geocoding of the address
6. Address key from the geocoder-normalized address

The report is then merged into (or created at) its address key in one
store transaction, and the running stats move by the same +1.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from app.core.settings import settings
from app.models.report import ReportSubmission, SubmissionResult
from app.services.content_moderator import ContentModerator
from app.services.errors import AddressNotFound, InvalidDate, MissingFields
from app.services.geocode_validator import GeocodeValidator
from app.services.quota_ledger import SUBMISSION_BUCKET, QuotaLedger
from app.services.stats import adjust_stats, reported_count
from app.services.stores.base import PENDING, VERIFIED, ReportStore
from app.utils.address import make_address_key, sanitize_input
from app.utils.dates import is_date_today_utc, is_valid_iso8601, utc_now
from app.utils.security import short_hash

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "Data logged and saved successfully"
MERGED_MESSAGE = "Location updated successfully"


class ReportService:
    """
    Validates, deduplicates and stores incoming reports.
    """

    def __init__(
        self,
        reports: ReportStore,
        quota: QuotaLedger,
        moderator: ContentModerator,
        geocoder: GeocodeValidator,
        daily_limit: int = 3,
        window_days: int = 7,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.reports = reports
        self.quota = quota
        self.moderator = moderator
        self.geocoder = geocoder
        self.daily_limit = daily_limit
        self.window_days = window_days
        self.clock = clock

    def submit_report(
        self,
        submission: ReportSubmission,
        source_identifier: Optional[str],
        publish: bool = False,
    ) -> SubmissionResult:
        """
        Run a submission through the intake gates and store it.

        Args:
            submission: Raw client submission
            source_identifier: Client address used for the daily quota
            publish: Merge into the verified tree instead of pending
                     (direct-publish intake for trusted imports)

        Returns:
            SubmissionResult with the normalized address and whether a
            new report was created

        Raises:
            MissingFields, InvalidDate, UnknownSource, QuotaExceeded,
            ModeratedContent, AddressNotFound: Validation failures
            InfrastructureError: Store or external service failure
        """
        now = self.clock()

        address = sanitize_input(submission.address)
        added_at = (submission.added_at or "").strip()
        if not address or not added_at:
            raise MissingFields()

        if not is_valid_iso8601(added_at):
            raise InvalidDate("Invalid date format for addedAt. Must be ISO 8601 format.")
        if not is_date_today_utc(added_at, now):
            raise InvalidDate("Invalid date format for addedAt. Must be today's date in ISO 8601 format.")

        self.quota.enforce(SUBMISSION_BUCKET, source_identifier, self.daily_limit)
        source_hash = self.quota.source_hash(SUBMISSION_BUCKET, source_identifier)

        note = sanitize_input(submission.additional_info)
        self.moderator.screen(
            note,
            {
                "addedAt": added_at,
                "address": address,
                "additionalInfo": note,
                "sourceHash": source_hash,
            },
        )

        location = self.geocoder.validate(address)
        report_id = make_address_key(location.formatted_address)
        if not report_id:
            raise AddressNotFound()

        tree = VERIFIED if publish else PENDING
        image_field, image_value = ("imageUrl", submission.image_url) if publish else ("imagePath", submission.image_path)
        outcome: Dict[str, bool] = {}

        def _merge(current: Optional[Dict]) -> Dict:
            outcome["created"] = current is None
            record = dict(current or {})
            record.update({
                "addedAt": added_at,
                "address": location.formatted_address,
                "additionalInfo": note,
                "lat": location.lat,
                "lng": location.lng,
                "reported": 1 if current is None else reported_count(current) + 1,
            })
            if image_value:
                record[image_field] = image_value
            return record

        self.reports.merge(tree, report_id, _merge)
        created = outcome.get("created", True)

        try:
            adjust_stats(self.reports, 1, added_at, now, self.window_days)
        except Exception as e:
            # Snapshot is a cache; recalculate_stats reconciles it
            logger.error(f"❌ Stats update failed after storing report {report_id}: {e}", exc_info=True)

        action = "created" if created else "merged"
        logger.info(f"✅ Report {report_id} {action} in {tree} (source={short_hash(source_hash)})")

        return SubmissionResult(
            message=CREATED_MESSAGE if created else MERGED_MESSAGE,
            formatted_address=location.formatted_address,
            report_id=report_id,
            created=created,
        )


_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the process-wide report service."""
    global _report_service
    if _report_service is None:
        from app.services.content_moderator import get_content_moderator
        from app.services.geocode_validator import get_geocode_validator
        from app.services.quota_ledger import get_quota_ledger
        from app.services.stores.registry import get_stores

        _report_service = ReportService(
            reports=get_stores().reports,
            quota=get_quota_ledger(),
            moderator=get_content_moderator(),
            geocoder=get_geocode_validator(),
            daily_limit=settings.DAILY_SUBMISSION_LIMIT,
            window_days=settings.AGING_WINDOW_DAYS,
        )
    return _report_service
