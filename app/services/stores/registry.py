"""
Store registry - resolves the store bundle for the running deployment.
"""

import logging
from typing import Optional

from app.core.settings import settings
from app.services.stores.base import StoreBundle

logger = logging.getLogger(__name__)

_stores: Optional[StoreBundle] = None


def get_stores() -> StoreBundle:
    """
    Resolve the store bundle once per process.

    Rules:
    - USE_MOCK_DB=true: in-memory stores (state lives for the process lifetime).
    - Otherwise: Realtime Database, Firestore and Cloud Storage via firebase_admin.
    """
    global _stores
    if _stores is not None:
        return _stores

    if settings.USE_MOCK_DB:
        from app.services.stores.memory import create_memory_stores

        _stores = create_memory_stores()
        logger.info("✅ In-memory stores initialized (USE_MOCK_DB=true)")
        return _stores

    from app.config.firebase import get_bucket, get_db, get_rtdb_root
    from app.services.stores.firebase_stores import (
        FirebaseImageStore,
        FirestoreAuditLogStore,
        FirestoreColdStore,
        FirestoreModerationLogStore,
        FirestoreRateLimitStore,
        RealtimeReportStore,
    )

    db = get_db()
    _stores = StoreBundle(
        reports=RealtimeReportStore(get_rtdb_root()),
        cold=FirestoreColdStore(db),
        images=FirebaseImageStore(get_bucket()),
        audit=FirestoreAuditLogStore(db),
        moderation_log=FirestoreModerationLogStore(db),
        rate_limits=FirestoreRateLimitStore(db),
    )
    logger.info("✅ Firebase stores initialized")
    return _stores
