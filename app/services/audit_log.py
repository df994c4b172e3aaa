"""
Audit Log - append-only records of verifier decisions.
"""

import logging
from datetime import datetime
from typing import Optional

from app.services.stores.base import AuditLogStore
from app.utils.dates import to_iso

logger = logging.getLogger(__name__)

VERIFICATION_COLLECTION = "verificationLogs"
DENIAL_COLLECTION = "deniedLogs"


def decision_entry_id(report_id: str, pending_added_at: Optional[str]) -> Optional[str]:
    """
    Stable entry id for one decision on one pending report.

    A retried decision writes the same id and replaces its entry. Returns
    None (store-assigned id) when the pending report has no addedAt.
    """
    if not pending_added_at:
        return None
    return f"{report_id}_{pending_added_at}"


class AuditLog:
    def __init__(self, store: AuditLogStore):
        self.store = store

    def record_verification(
        self,
        report_id: str,
        verifier_uid: str,
        report_address: Optional[str],
        image_url: Optional[str],
        verified_at: datetime,
        entry_id: Optional[str] = None,
    ) -> str:
        entry = {
            "reportId": report_id,
            "verifierUid": verifier_uid,
            "reportAddress": report_address,
            "imageUrl": image_url,
            "verifiedAt": to_iso(verified_at),
        }
        entry_id = self.store.append(VERIFICATION_COLLECTION, entry, entry_id=entry_id)
        logger.info(f"Audit: report {report_id} verified by {verifier_uid}")
        return entry_id

    def record_denial(
        self,
        report_id: str,
        verifier_uid: str,
        report_address: Optional[str],
        image_path: Optional[str],
        image_name: Optional[str],
        denied_at: datetime,
        entry_id: Optional[str] = None,
    ) -> str:
        entry = {
            "reportId": report_id,
            "verifierUid": verifier_uid,
            "reportAddress": report_address,
            "imagePath": image_path,
            "imageName": image_name,
            "deniedAt": to_iso(denied_at),
        }
        entry_id = self.store.append(DENIAL_COLLECTION, entry, entry_id=entry_id)
        logger.info(f"Audit: report {report_id} denied by {verifier_uid}")
        return entry_id
