"""
Storage ports and implementations for the report pipeline.
"""

from app.services.stores.base import (
    LIVE_TREES,
    PENDING,
    VERIFIED,
    AuditLogStore,
    ColdStore,
    ImageStore,
    ModerationLogStore,
    RateLimitStore,
    ReportStore,
    StoreBundle,
)
from app.services.stores.registry import get_stores

__all__ = [
    "LIVE_TREES",
    "PENDING",
    "VERIFIED",
    "AuditLogStore",
    "ColdStore",
    "ImageStore",
    "ModerationLogStore",
    "RateLimitStore",
    "ReportStore",
    "StoreBundle",
    "get_stores",
]
