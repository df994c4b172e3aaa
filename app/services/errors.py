"""
Service error taxonomy.

Every failure a service can report to a caller derives from ServiceError and
carries the HTTP status it maps to plus a user-presentable message. The
FastAPI exception handlers in app.main translate these into responses.

Categories:
- Validation: malformed input, stale date, moderated content, quota, unknown source
- Authorization: missing or insufficient verifier role
- Not found: report absent (never created or already processed)
- Infrastructure: store or external service failure (generic message to caller)
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for all errors surfaced by the service layer."""

    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message


class ValidationFailed(ServiceError):
    status_code = 400
    code = "invalid-argument"


class MissingFields(ValidationFailed):
    def __init__(self, message: str = "Missing required fields: addedAt and address"):
        super().__init__(message)


class InvalidDate(ValidationFailed):
    pass


class AddressNotFound(ValidationFailed):
    code = "not-found"

    def __init__(self, message: str = "Please provide a valid address that can be found on the map"):
        super().__init__(message)


class ModeratedContent(ValidationFailed):
    status_code = 422
    code = "unprocessable"

    def __init__(self, message: str = "Please avoid using negative or abusive language in the additional info"):
        super().__init__(message)


class QuotaExceeded(ValidationFailed):
    status_code = 429
    code = "resource-exhausted"

    def __init__(self, message: str = "Daily limit reached. Try again tomorrow."):
        super().__init__(message)


class UnknownSource(ValidationFailed):
    status_code = 412
    code = "failed-precondition"

    def __init__(self, message: str = "Unable to determine client IP address. Request blocked for security."):
        super().__init__(message)


class Unauthenticated(ServiceError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class PermissionDenied(ServiceError):
    status_code = 403
    code = "permission-denied"

    def __init__(self, message: str = "Insufficient permissions. Verifier role required."):
        super().__init__(message)


class ReportNotFound(ServiceError):
    status_code = 404
    code = "not-found"

    def __init__(self, report_id: str):
        super().__init__(f"Report with ID {report_id} not found in pending reports")
        self.report_id = report_id


class InfrastructureError(ServiceError):
    """
    Store or external service failure.

    The detailed message is kept for the server log; callers only ever see
    the generic public message.
    """

    status_code = 500
    code = "internal"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    @property
    def public_message(self) -> str:
        return "Internal server error"


class GeocodingUnavailable(InfrastructureError):
    pass


class ModerationUnavailable(InfrastructureError):
    pass


class ImageRelocationError(InfrastructureError):
    pass


class MaintenanceError(InfrastructureError):
    pass
