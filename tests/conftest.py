"""
Shared fixtures: in-memory stores, a fixed clock and offline providers.
"""

import os

os.environ.setdefault("USE_MOCK_DB", "true")

from datetime import datetime, timedelta, timezone

import pytest

from app.models.report import ReportSubmission
from app.models.user import CallerIdentity
from app.services.content_moderator import ContentModerator
from app.services.geocode_validator import GeocodeValidator
from app.services.geocoding.mock_provider import StaticGeocodingProvider, street_match
from app.services.maintenance_service import MaintenanceService
from app.services.moderation.keyword_provider import KeywordModerationProvider
from app.services.quota_ledger import QuotaLedger
from app.services.report_service import ReportService
from app.services.verification_service import VerificationService
from app.services.audit_log import AuditLog
from app.services.image_relocator import ImageRelocator
from app.services.stores.memory import create_memory_stores
from app.utils.dates import to_iso

NOW = datetime(2024, 10, 25, 15, 0, 0, tzinfo=timezone.utc)

MAIN_ST = "123 Main St, Springfield, IL 62701, USA"
OAK_AVE = "456 Oak Ave, Springfield, IL 62701, USA"
AMPHITHEATRE = "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def stores():
    return create_memory_stores()


@pytest.fixture
def geocoding_provider():
    return StaticGeocodingProvider({
        "123 Main St": [street_match(MAIN_ST, 39.7817, -89.6501)],
        "456 Oak Ave": [street_match(OAK_AVE, 39.7990, -89.6440)],
        "1600 Amphitheatre Pkwy, Mountain View, CA": [street_match(AMPHITHEATRE, 37.4220, -122.0841)],
    })


@pytest.fixture
def moderator(stores, clock):
    return ContentModerator(KeywordModerationProvider(), stores.moderation_log, clock=clock)


@pytest.fixture
def quota(stores, clock):
    return QuotaLedger(stores.rate_limits, salt="test-salt", clock=clock)


@pytest.fixture
def report_service(stores, quota, moderator, geocoding_provider, clock):
    return ReportService(
        reports=stores.reports,
        quota=quota,
        moderator=moderator,
        geocoder=GeocodeValidator(geocoding_provider, country="US"),
        daily_limit=3,
        clock=clock,
    )


@pytest.fixture
def verification_service(stores, clock):
    return VerificationService(
        reports=stores.reports,
        relocator=ImageRelocator(stores.images),
        audit=AuditLog(stores.audit),
        removal_attempts=3,
        removal_backoff_seconds=0,
        clock=clock,
        sleep=lambda seconds: None,
    )


@pytest.fixture
def maintenance_service(stores, clock):
    return MaintenanceService(stores.reports, stores.cold, window_days=7, clock=clock)


@pytest.fixture
def verifier():
    return CallerIdentity(uid="verifier-1", email="v@example.org", role="verifier")


@pytest.fixture
def submission(clock):
    """Factory for submissions dated "now" unless told otherwise."""

    def _make(address="123 Main St", note="fine", added_at=None, image_path=None, image_url=None):
        return ReportSubmission(
            addedAt=added_at if added_at is not None else to_iso(clock()),
            address=address,
            additionalInfo=note,
            imagePath=image_path,
            imageUrl=image_url,
        )

    return _make
