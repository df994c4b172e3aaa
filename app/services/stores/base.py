"""
Store ports.

Narrow capability contracts the services depend on. Firebase-backed
implementations live in firebase_stores.py, in-memory ones (mock mode and
tests) in memory.py.

Transactional methods take an `apply` callback that receives the current
value (or None) and returns the value to write. Implementations may invoke
the callback more than once when a concurrent write forces a retry, so
callbacks must be pure.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional

PENDING = "pending"
VERIFIED = "verified"
LIVE_TREES = (PENDING, VERIFIED)

Record = Dict[str, Any]
ApplyFn = Callable[[Optional[Record]], Record]


class ReportStore(ABC):
    """
    Live report tree (pending and verified) plus the singleton stats node.

    Contract:
    - Records are keyed by address key inside a tree.
    - `merge` is an atomic read-modify-write of one record.
    - `update_stats` is an atomic read-modify-write of the stats snapshot.
    """

    @abstractmethod
    def get(self, tree: str, report_id: str) -> Optional[Record]:
        raise NotImplementedError

    @abstractmethod
    def merge(self, tree: str, report_id: str, apply: ApplyFn) -> Record:
        raise NotImplementedError

    @abstractmethod
    def put(self, tree: str, report_id: str, record: Record) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, tree: str, report_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(self, tree: str) -> Dict[str, Record]:
        raise NotImplementedError

    @abstractmethod
    def read_stats(self) -> Record:
        raise NotImplementedError

    @abstractmethod
    def update_stats(self, apply: ApplyFn) -> Record:
        raise NotImplementedError

    @abstractmethod
    def write_stats(self, snapshot: Record) -> None:
        raise NotImplementedError


class ColdStore(ABC):
    """Aged-out reports keyed by their original id."""

    @abstractmethod
    def exists(self, report_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def put(self, report_id: str, record: Record) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(self) -> Dict[str, Record]:
        raise NotImplementedError

    @abstractmethod
    def delete_many(self, report_ids: Iterable[str]) -> int:
        raise NotImplementedError


class ImageStore(ABC):
    """Object storage holding report images."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def copy(self, source_path: str, destination_path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def ensure_download_token(self, path: str) -> str:
        """Return the object's download token, minting one if it has none."""
        raise NotImplementedError

    @abstractmethod
    def download_url(self, path: str, token: str) -> str:
        raise NotImplementedError


class AuditLogStore(ABC):
    """Append-only audit collections."""

    @abstractmethod
    def append(self, collection: str, entry: Record, entry_id: Optional[str] = None) -> str:
        """
        Store an entry and return its id.

        With `entry_id`, writing the same id again replaces the entry instead
        of adding a second one.
        """
        raise NotImplementedError


class ModerationLogStore(ABC):
    """Archive of submissions rejected by moderation."""

    @abstractmethod
    def append(self, entry: Record) -> str:
        raise NotImplementedError


class RateLimitStore(ABC):
    """Per-source daily counters."""

    @abstractmethod
    def update(self, bucket_hash: str, apply: ApplyFn) -> Record:
        raise NotImplementedError

    @abstractmethod
    def prune(self, before_date: str) -> int:
        """
        Delete records whose `date` is earlier than `before_date` (YYYY-MM-DD).

        Records without a `date` count as current and are kept; the
        `expiresAt` TTL removes them.
        """
        raise NotImplementedError


class StoreBundle:
    """The full set of stores one deployment uses."""

    def __init__(
        self,
        reports: ReportStore,
        cold: ColdStore,
        images: ImageStore,
        audit: AuditLogStore,
        moderation_log: ModerationLogStore,
        rate_limits: RateLimitStore,
    ):
        self.reports = reports
        self.cold = cold
        self.images = images
        self.audit = audit
        self.moderation_log = moderation_log
        self.rate_limits = rate_limits
