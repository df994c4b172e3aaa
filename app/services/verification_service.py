"""
Verification Service - verifier decisions on pending reports.

State machine per report id:

    Pending --verify--> Verified
    Pending --deny----> Denied   (image kept under reports/denied for audit)
    Pending --delete--> Deleted  (image removed)

Every action takes (request, caller) and requires the verifier role.
Removing the pending record is the last step, so a second action on the
same id fails with ReportNotFound.

Failure handling:
- Image step fails: nothing has changed, the error propagates.
- After the image step: the remaining steps are all attempted. Pending
  removal is retried; audit and stats failures are logged and returned as
  warnings on the result.
- Retrying an action whose pending removal failed is safe: the verified
  record remembers the pending addedAt it absorbed (`pendingAddedAt`) and is
  not counted twice, and audit entries are keyed by report id and pending
  addedAt so a retry replaces its own entry.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.core.settings import settings
from app.models.report import ActionResult, ReportActionRequest
from app.models.user import CallerIdentity
from app.services.audit_log import AuditLog, decision_entry_id
from app.services.errors import (
    InfrastructureError,
    PermissionDenied,
    ReportNotFound,
    Unauthenticated,
    ValidationFailed,
)
from app.services.image_relocator import ImageRelocator, image_file_name
from app.services.stats import adjust_stats, reported_count, shift_stats
from app.services.stores.base import PENDING, VERIFIED, ReportStore
from app.utils.dates import to_iso, utc_now

logger = logging.getLogger(__name__)

# pending addedAt the verified record last absorbed; makes a retried verify a no-op
PENDING_MARKER = "pendingAddedAt"


def require_verifier_role(caller: Optional[CallerIdentity]) -> CallerIdentity:
    """
    Raises:
        Unauthenticated: No caller identity
        PermissionDenied: Caller lacks the verifier role
    """
    if caller is None:
        raise Unauthenticated()
    if not caller.is_verifier:
        raise PermissionDenied()
    return caller


class VerificationService:
    def __init__(
        self,
        reports: ReportStore,
        relocator: ImageRelocator,
        audit: AuditLog,
        removal_attempts: int = 3,
        removal_backoff_seconds: float = 0.5,
        window_days: int = 7,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.reports = reports
        self.relocator = relocator
        self.audit = audit
        self.removal_attempts = max(1, removal_attempts)
        self.removal_backoff_seconds = removal_backoff_seconds
        self.window_days = window_days
        self.clock = clock
        self.sleep = sleep

    def verify_report(self, request: ReportActionRequest, caller: Optional[CallerIdentity]) -> ActionResult:
        """
        Publish a pending report.

        If a verified report already exists at the same address key, its
        count is incremented and the pending image is discarded. Otherwise
        the image moves to reports/verified/{id}/ and a verified report is
        created from the pending fields.
        """
        verifier = require_verifier_role(caller)
        report_id = self._report_id(request)
        pending = self._load_pending(report_id)
        now = self.clock()
        warnings: List[str] = []
        pending_count = reported_count(pending)
        image_path = pending.get("imagePath")

        existing = self.reports.get(VERIFIED, report_id)
        if existing is not None:
            if image_path:
                try:
                    self.relocator.discard(image_path)
                except InfrastructureError as e:
                    logger.warning(f"⚠️ Could not discard pending image {image_path}: {e}")
                    warnings.append(f"Pending image {image_path} could not be deleted")
            image_url = existing.get("imageUrl")
        else:
            image_url = self.relocator.move_to_verified(image_path, report_id) if image_path else pending.get("imageUrl")

        pending_added_at = pending.get("addedAt")
        outcome: Dict[str, Any] = {}

        def _publish(current: Optional[Dict]) -> Dict:
            outcome.clear()
            if current is not None and pending_added_at and current.get(PENDING_MARKER) == pending_added_at:
                # Written by an earlier attempt on this same pending report
                outcome["replayed"] = True
                return current
            outcome["previous"] = current
            if current is not None:
                record = dict(current)
                record["reported"] = reported_count(current) + 1
                record["addedAt"] = to_iso(now)
                record[PENDING_MARKER] = pending_added_at
                return record
            record = {
                "addedAt": pending_added_at,
                "address": pending.get("address"),
                "additionalInfo": pending.get("additionalInfo"),
                "lat": pending.get("lat"),
                "lng": pending.get("lng"),
                "reported": pending_count,
                "verifiedAt": to_iso(now),
                PENDING_MARKER: pending_added_at,
            }
            if image_url:
                record["imageUrl"] = image_url
            return record

        self.reports.merge(VERIFIED, report_id, _publish)
        replayed = outcome.get("replayed", False)
        previous = outcome.get("previous")

        if previous is not None:
            # The verified count moves from its old addedAt to now
            changes = [
                (-pending_count, pending_added_at),
                (-reported_count(previous), previous.get("addedAt")),
                (reported_count(previous) + 1, to_iso(now)),
            ]
            self._try(
                warnings,
                "Stats could not be updated",
                lambda: shift_stats(self.reports, changes, now, self.window_days),
            )

        self._try(
            warnings,
            "Audit log entry could not be written",
            lambda: self.audit.record_verification(
                report_id,
                verifier.uid,
                pending.get("address"),
                image_url,
                now,
                entry_id=decision_entry_id(report_id, pending_added_at),
            ),
        )
        self._remove_pending(report_id)

        if replayed:
            state = "already published"
        elif previous is not None:
            state = "merged"
        else:
            state = "created"
        logger.info(f"✅ Report {report_id} verified by {verifier.uid} ({state})")
        return ActionResult(message=f"Report {report_id} verified successfully", warnings=warnings)

    def deny_report(self, request: ReportActionRequest, caller: Optional[CallerIdentity]) -> ActionResult:
        """Reject a pending report, keeping its image under reports/denied/."""
        verifier = require_verifier_role(caller)
        report_id = self._report_id(request)
        pending = self._load_pending(report_id)
        now = self.clock()
        warnings: List[str] = []

        image_path = pending.get("imagePath")
        denied_path = self.relocator.move_to_denied(image_path) if image_path else None

        self._try(
            warnings,
            "Audit log entry could not be written",
            lambda: self.audit.record_denial(
                report_id,
                verifier.uid,
                pending.get("address"),
                denied_path,
                image_file_name(denied_path) if denied_path else None,
                now,
                entry_id=decision_entry_id(report_id, pending.get("addedAt")),
            ),
        )
        self._remove_pending(report_id)
        self._try(
            warnings,
            "Stats could not be updated",
            lambda: adjust_stats(self.reports, -reported_count(pending), pending.get("addedAt"), now, self.window_days),
        )

        logger.info(f"✅ Report {report_id} denied by {verifier.uid}")
        return ActionResult(message=f"Report {report_id} denied successfully", warnings=warnings)

    def delete_report(self, request: ReportActionRequest, caller: Optional[CallerIdentity]) -> ActionResult:
        """Purge a pending report and its image. No audit entry is written."""
        verifier = require_verifier_role(caller)
        report_id = self._report_id(request)
        pending = self._load_pending(report_id)
        now = self.clock()
        warnings: List[str] = []

        image_path = pending.get("imagePath")
        if image_path:
            self.relocator.discard(image_path)

        self._remove_pending(report_id)
        self._try(
            warnings,
            "Stats could not be updated",
            lambda: adjust_stats(self.reports, -reported_count(pending), pending.get("addedAt"), now, self.window_days),
        )

        logger.info(f"✅ Report {report_id} deleted by {verifier.uid}")
        return ActionResult(message=f"Report {report_id} deleted successfully", warnings=warnings)

    def _report_id(self, request: ReportActionRequest) -> str:
        report_id = (request.report_id or "").strip()
        if not report_id:
            raise ValidationFailed("Report ID is required")
        return report_id

    def _load_pending(self, report_id: str) -> Dict:
        pending = self.reports.get(PENDING, report_id)
        if pending is None:
            raise ReportNotFound(report_id)
        return pending

    def _remove_pending(self, report_id: str) -> None:
        """
        Remove the pending record, retrying with linear backoff.

        Runs after the image has moved, so giving up here would leave a
        pending record pointing at a missing image; the final failure is
        raised as an infrastructure error.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.removal_attempts + 1):
            try:
                self.reports.remove(PENDING, report_id)
                return
            except Exception as e:
                last_error = e
                logger.warning(f"⚠️ Removing pending report {report_id} failed (attempt {attempt}/{self.removal_attempts}): {e}")
                if attempt < self.removal_attempts:
                    self.sleep(self.removal_backoff_seconds * attempt)
        raise InfrastructureError(f"Failed to remove pending report {report_id}: {last_error}", cause=last_error)

    def _try(self, warnings: List[str], warning: str, step: Callable[[], object]) -> None:
        try:
            step()
        except Exception as e:
            logger.error(f"❌ {warning}: {e}", exc_info=True)
            warnings.append(warning)


_verification_service: Optional[VerificationService] = None


def get_verification_service() -> VerificationService:
    global _verification_service
    if _verification_service is None:
        from app.services.stores.registry import get_stores

        stores = get_stores()
        _verification_service = VerificationService(
            reports=stores.reports,
            relocator=ImageRelocator(stores.images),
            audit=AuditLog(stores.audit),
            removal_attempts=settings.PENDING_REMOVAL_ATTEMPTS,
            removal_backoff_seconds=settings.PENDING_REMOVAL_BACKOFF_SECONDS,
            window_days=settings.AGING_WINDOW_DAYS,
        )
    return _verification_service
