"""
Stats endpoint - public aggregate counters for the map header.
"""

from fastapi import APIRouter, Depends

from app.models.report import StatsSnapshot
from app.services.stores.base import StoreBundle
from app.services.stores.registry import get_stores

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=StatsSnapshot)
def get_stats(stores: StoreBundle = Depends(get_stores)):
    """Current snapshot (total, today, last 7 days)."""
    return StatsSnapshot(**stores.reports.read_stats())
