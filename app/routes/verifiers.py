"""
Verifier endpoints - human review of pending reports.

All endpoints require a Firebase ID token whose `role` claim is "verifier".
A report can be acted on once: afterwards it is no longer pending and every
further action returns 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.models.report import ActionResult, ReportActionRequest
from app.models.user import CallerIdentity
from app.routes.dependencies import get_caller_identity
from app.services.verification_service import VerificationService, get_verification_service

router = APIRouter(prefix="/verifiers", tags=["Verifiers"])


@router.post("/reports/{report_id}/verify", response_model=ActionResult)
def verify_report(
    report_id: str,
    caller: Optional[CallerIdentity] = Depends(get_caller_identity),
    service: VerificationService = Depends(get_verification_service),
):
    """
    Publish a pending report.

    Moves its image to the verified area, or merges into the verified
    report already at the same address.
    """
    return service.verify_report(ReportActionRequest(report_id=report_id), caller)


@router.post("/reports/{report_id}/deny", response_model=ActionResult)
def deny_report(
    report_id: str,
    caller: Optional[CallerIdentity] = Depends(get_caller_identity),
    service: VerificationService = Depends(get_verification_service),
):
    """Reject a pending report. The image is kept in the denied area for audit."""
    return service.deny_report(ReportActionRequest(report_id=report_id), caller)


@router.delete("/reports/{report_id}", response_model=ActionResult)
def delete_report(
    report_id: str,
    caller: Optional[CallerIdentity] = Depends(get_caller_identity),
    service: VerificationService = Depends(get_verification_service),
):
    """Purge a pending report and its image."""
    return service.delete_report(ReportActionRequest(report_id=report_id), caller)
