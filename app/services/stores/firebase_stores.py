"""
Firebase-backed store implementations.

- Realtime Database: live report tree (`pending/`, `verified/`) and `stats`
- Firestore: `old-pins` cold store, `negative` moderation log, audit
  collections and the `rate_daily_ip` ledger
- Cloud Storage: report images
"""

import logging
import uuid
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

from firebase_admin import firestore

from app.services.stores.base import (
    ApplyFn,
    AuditLogStore,
    ColdStore,
    ImageStore,
    ModerationLogStore,
    RateLimitStore,
    Record,
    ReportStore,
)
from app.utils.firestore_helpers import delete_in_batches, where_filter

logger = logging.getLogger(__name__)

COLD_COLLECTION = "old-pins"
MODERATION_COLLECTION = "negative"
RATE_LIMIT_COLLECTION = "rate_daily_ip"
STATS_NODE = "stats"

EMPTY_STATS = {"total_pins": 0, "today_pins": 0, "week_pins": 0}


def _strip_none(record: Record) -> Record:
    # RTDB treats null children as deletes
    return {key: value for key, value in record.items() if value is not None}


class RealtimeReportStore(ReportStore):
    def __init__(self, root):
        self.root = root

    def _ref(self, tree: str, report_id: str):
        return self.root.child(tree).child(report_id)

    def get(self, tree: str, report_id: str) -> Optional[Record]:
        return self._ref(tree, report_id).get()

    def merge(self, tree: str, report_id: str, apply: ApplyFn) -> Record:
        return self._ref(tree, report_id).transaction(lambda current: _strip_none(apply(current)))

    def put(self, tree: str, report_id: str, record: Record) -> None:
        self._ref(tree, report_id).set(_strip_none(record))

    def remove(self, tree: str, report_id: str) -> None:
        self._ref(tree, report_id).delete()

    def list(self, tree: str) -> Dict[str, Record]:
        return self.root.child(tree).get() or {}

    def read_stats(self) -> Record:
        return dict(EMPTY_STATS, **(self.root.child(STATS_NODE).get() or {}))

    def update_stats(self, apply: ApplyFn) -> Record:
        return self.root.child(STATS_NODE).transaction(
            lambda current: apply(dict(EMPTY_STATS, **(current or {})))
        )

    def write_stats(self, snapshot: Record) -> None:
        self.root.child(STATS_NODE).set(snapshot)


class FirestoreColdStore(ColdStore):
    def __init__(self, db, collection: str = COLD_COLLECTION):
        self.db = db
        self.collection = collection

    def exists(self, report_id: str) -> bool:
        return self.db.collection(self.collection).document(report_id).get().exists

    def put(self, report_id: str, record: Record) -> None:
        self.db.collection(self.collection).document(report_id).set(record)

    def list(self) -> Dict[str, Record]:
        return {doc.id: doc.to_dict() for doc in self.db.collection(self.collection).stream()}

    def delete_many(self, report_ids: Iterable[str]) -> int:
        refs = [self.db.collection(self.collection).document(report_id) for report_id in report_ids]
        return delete_in_batches(self.db, refs)


class FirebaseImageStore(ImageStore):
    TOKEN_METADATA_KEY = "firebaseStorageDownloadTokens"

    def __init__(self, bucket):
        self.bucket = bucket

    def exists(self, path: str) -> bool:
        return self.bucket.blob(path).exists()

    def copy(self, source_path: str, destination_path: str) -> None:
        self.bucket.copy_blob(self.bucket.blob(source_path), self.bucket, destination_path)

    def delete(self, path: str) -> None:
        self.bucket.blob(path).delete()

    def ensure_download_token(self, path: str) -> str:
        blob = self.bucket.blob(path)
        blob.reload()
        metadata = dict(blob.metadata or {})
        existing = metadata.get(self.TOKEN_METADATA_KEY)
        if existing:
            return existing.split(",")[0]

        token = str(uuid.uuid4())
        metadata[self.TOKEN_METADATA_KEY] = token
        blob.metadata = metadata
        blob.patch()
        return token

    def download_url(self, path: str, token: str) -> str:
        return (
            f"https://firebasestorage.googleapis.com/v0/b/{self.bucket.name}/o/"
            f"{quote(path, safe='')}?alt=media&token={token}"
        )


class FirestoreAuditLogStore(AuditLogStore):
    def __init__(self, db):
        self.db = db

    def append(self, collection: str, entry: Record, entry_id: Optional[str] = None) -> str:
        if entry_id:
            self.db.collection(collection).document(entry_id).set(entry)
            return entry_id
        _, doc_ref = self.db.collection(collection).add(entry)
        return doc_ref.id


class FirestoreModerationLogStore(ModerationLogStore):
    def __init__(self, db, collection: str = MODERATION_COLLECTION):
        self.db = db
        self.collection = collection

    def append(self, entry: Record) -> str:
        _, doc_ref = self.db.collection(self.collection).add(entry)
        return doc_ref.id


class FirestoreRateLimitStore(RateLimitStore):
    def __init__(self, db, collection: str = RATE_LIMIT_COLLECTION):
        self.db = db
        self.collection = collection

    def update(self, bucket_hash: str, apply: ApplyFn) -> Record:
        ref = self.db.collection(self.collection).document(bucket_hash)

        @firestore.transactional
        def _update_in_transaction(transaction) -> Record:
            snapshot = ref.get(transaction=transaction)
            current: Optional[Dict[str, Any]] = snapshot.to_dict() if snapshot.exists else None
            updated = apply(current)
            transaction.set(ref, dict(updated, updatedAt=firestore.SERVER_TIMESTAMP), merge=True)
            return updated

        return _update_in_transaction(self.db.transaction())

    def prune(self, before_date: str) -> int:
        query = where_filter(self.db.collection(self.collection), "date", "<", before_date)
        deleted = delete_in_batches(self.db, (doc.reference for doc in query.stream()))
        logger.info(f"Pruned {deleted} stale rate ledger record(s) older than {before_date}")
        return deleted
