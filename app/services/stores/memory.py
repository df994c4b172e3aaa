"""
In-memory store implementations.

Used when USE_MOCK_DB=true (local development without Firebase
credentials) and by the test suite. A single lock per store gives the same
atomicity the Firebase transactions provide.
"""

import copy
import threading
import uuid
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from app.services.stores.base import (
    ApplyFn,
    AuditLogStore,
    ColdStore,
    ImageStore,
    ModerationLogStore,
    RateLimitStore,
    Record,
    ReportStore,
    StoreBundle,
)

EMPTY_STATS = {"total_pins": 0, "today_pins": 0, "week_pins": 0}


class InMemoryReportStore(ReportStore):
    def __init__(self):
        self._trees: Dict[str, Dict[str, Record]] = {}
        self._stats: Record = dict(EMPTY_STATS)
        self._lock = threading.RLock()

    def get(self, tree: str, report_id: str) -> Optional[Record]:
        with self._lock:
            record = self._trees.get(tree, {}).get(report_id)
            return copy.deepcopy(record)

    def merge(self, tree: str, report_id: str, apply: ApplyFn) -> Record:
        with self._lock:
            current = copy.deepcopy(self._trees.get(tree, {}).get(report_id))
            updated = apply(current)
            self._trees.setdefault(tree, {})[report_id] = copy.deepcopy(updated)
            return updated

    def put(self, tree: str, report_id: str, record: Record) -> None:
        with self._lock:
            self._trees.setdefault(tree, {})[report_id] = copy.deepcopy(record)

    def remove(self, tree: str, report_id: str) -> None:
        with self._lock:
            self._trees.get(tree, {}).pop(report_id, None)

    def list(self, tree: str) -> Dict[str, Record]:
        with self._lock:
            return copy.deepcopy(self._trees.get(tree, {}))

    def read_stats(self) -> Record:
        with self._lock:
            return dict(self._stats)

    def update_stats(self, apply: ApplyFn) -> Record:
        with self._lock:
            self._stats = dict(apply(dict(self._stats)))
            return dict(self._stats)

    def write_stats(self, snapshot: Record) -> None:
        with self._lock:
            self._stats = dict(snapshot)


class InMemoryColdStore(ColdStore):
    def __init__(self):
        self._docs: Dict[str, Record] = {}
        self._lock = threading.RLock()

    def exists(self, report_id: str) -> bool:
        with self._lock:
            return report_id in self._docs

    def put(self, report_id: str, record: Record) -> None:
        with self._lock:
            self._docs[report_id] = copy.deepcopy(record)

    def list(self) -> Dict[str, Record]:
        with self._lock:
            return copy.deepcopy(self._docs)

    def delete_many(self, report_ids: Iterable[str]) -> int:
        deleted = 0
        with self._lock:
            for report_id in report_ids:
                if self._docs.pop(report_id, None) is not None:
                    deleted += 1
        return deleted


class InMemoryImageStore(ImageStore):
    TOKEN_METADATA_KEY = "firebaseStorageDownloadTokens"

    def __init__(self, bucket_name: str = "mock-bucket"):
        self.bucket_name = bucket_name
        self._objects: Dict[str, Dict] = {}
        self._lock = threading.RLock()

    def add(self, path: str, data: bytes = b"", metadata: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            self._objects[path] = {"data": data, "metadata": dict(metadata or {})}

    def paths(self) -> List[str]:
        with self._lock:
            return sorted(self._objects)

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._objects

    def copy(self, source_path: str, destination_path: str) -> None:
        with self._lock:
            if source_path not in self._objects:
                raise FileNotFoundError(source_path)
            self._objects[destination_path] = copy.deepcopy(self._objects[source_path])

    def delete(self, path: str) -> None:
        with self._lock:
            if path not in self._objects:
                raise FileNotFoundError(path)
            del self._objects[path]

    def ensure_download_token(self, path: str) -> str:
        with self._lock:
            if path not in self._objects:
                raise FileNotFoundError(path)
            metadata = self._objects[path]["metadata"]
            existing = metadata.get(self.TOKEN_METADATA_KEY)
            if existing:
                return existing.split(",")[0]
            token = str(uuid.uuid4())
            metadata[self.TOKEN_METADATA_KEY] = token
            return token

    def download_url(self, path: str, token: str) -> str:
        return (
            f"https://firebasestorage.googleapis.com/v0/b/{self.bucket_name}/o/"
            f"{quote(path, safe='')}?alt=media&token={token}"
        )


class InMemoryAuditLogStore(AuditLogStore):
    def __init__(self):
        self.collections: Dict[str, List[Record]] = {}
        self._lock = threading.RLock()

    def append(self, collection: str, entry: Record, entry_id: Optional[str] = None) -> str:
        entry_id = entry_id or uuid.uuid4().hex
        with self._lock:
            entries = [e for e in self.collections.get(collection, []) if e["id"] != entry_id]
            entries.append(dict(entry, id=entry_id))
            self.collections[collection] = entries
        return entry_id


class InMemoryModerationLogStore(ModerationLogStore):
    def __init__(self):
        self.entries: List[Record] = []
        self._lock = threading.RLock()

    def append(self, entry: Record) -> str:
        entry_id = uuid.uuid4().hex
        with self._lock:
            self.entries.append(dict(entry, id=entry_id))
        return entry_id


class InMemoryRateLimitStore(RateLimitStore):
    def __init__(self):
        self.records: Dict[str, Record] = {}
        self._lock = threading.RLock()

    def update(self, bucket_hash: str, apply: ApplyFn) -> Record:
        with self._lock:
            current = copy.deepcopy(self.records.get(bucket_hash))
            updated = apply(current)
            merged = dict(current or {})
            merged.update(updated)
            self.records[bucket_hash] = merged
            return dict(merged)

    def prune(self, before_date: str) -> int:
        with self._lock:
            stale = [
                key for key, record in self.records.items()
                if record.get("date") and record["date"] < before_date
            ]
            for key in stale:
                del self.records[key]
        return len(stale)


def create_memory_stores() -> StoreBundle:
    return StoreBundle(
        reports=InMemoryReportStore(),
        cold=InMemoryColdStore(),
        images=InMemoryImageStore(),
        audit=InMemoryAuditLogStore(),
        moderation_log=InMemoryModerationLogStore(),
        rate_limits=InMemoryRateLimitStore(),
    )
