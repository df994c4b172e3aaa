"""
Report endpoints - anonymous sighting submission.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.models.report import ReportSubmission, SubmissionResult
from app.routes.dependencies import get_client_source
from app.services.report_service import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=SubmissionResult)
def submit_report(
    report: ReportSubmission,
    source: Optional[str] = Depends(get_client_source),
    service: ReportService = Depends(get_report_service),
):
    """
    Submit a sighting report.

    This endpoint:
    1. Validates fields and today's date
    2. Applies the per-source daily quota
    3. Moderates the note and geocodes the address
    4. Creates a pending report, or merges into the one at the same address

    Errors:
        400: Missing fields, bad date, address not found
        412: Client address could not be determined
        422: Note rejected by moderation
        429: Daily limit reached
        500: Server error
    """
    logger.info("📝 POST /reports")
    return service.submit_report(report, source)
