"""
Maintenance API Routes

Internal endpoints for scheduler-invoked jobs (Cloud Scheduler or cron).
Guarded by the X-Internal-Key header.
"""

from fastapi import APIRouter, Depends

from app.services.maintenance_service import MaintenanceService, get_maintenance_service
from app.services.quota_ledger import QuotaLedger, get_quota_ledger
from app.routes.dependencies import verify_internal_key

router = APIRouter(prefix="/internal", tags=["Maintenance"])


@router.post("/age-reports", response_model=dict)
def run_aging_job(
    _: bool = Depends(verify_internal_key),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    """
    Run the daily aging job.

    Moves verified pins older than the aging window to cold storage and
    rolls today/week counters.
    """
    return service.age_out_reports()


@router.post("/recalculate-stats", response_model=dict)
def recalculate_stats(
    _: bool = Depends(verify_internal_key),
    service: MaintenanceService = Depends(get_maintenance_service),
):
    """Recompute the stats snapshot from live and cold reports."""
    return service.recalculate_stats()


@router.post("/prune-rate-limits", response_model=dict)
def prune_rate_limits(
    _: bool = Depends(verify_internal_key),
    ledger: QuotaLedger = Depends(get_quota_ledger),
):
    """Delete rate ledger records from previous days."""
    return {"removed": ledger.prune_stale()}
