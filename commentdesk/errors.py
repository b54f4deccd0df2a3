"""
Error taxonomy shared by services, repositories and routes.

Every error carries a stable ``kind`` and the HTTP status the API layer
renders it with.
"""


class CommentDeskError(Exception):
    """Base exception for comment desk errors."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "detail": self.message}


class MissingTenant(CommentDeskError):
    """Raised when no tenant id can be resolved for a request."""

    kind = "missing_tenant"
    status_code = 400

    def __init__(self, message: str = "Missing tenant id"):
        super().__init__(message)


class InvalidPayload(CommentDeskError):
    """Raised when a request is malformed."""

    kind = "invalid_payload"
    status_code = 400


class NotFound(CommentDeskError):
    """Raised when a student or template does not exist for the tenant."""

    kind = "not_found"
    status_code = 404


class Forbidden(CommentDeskError):
    """Raised when the caller lacks a role required for a write."""

    kind = "forbidden"
    status_code = 403


class StoreUnavailable(CommentDeskError):
    """Raised when the record store cannot be reached or a query fails."""

    kind = "store_unavailable"
    status_code = 503

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message, recoverable=True)
        self.operation = operation


class GenerationUnavailable(CommentDeskError):
    """Raised when the generation provider fails during an active call."""

    kind = "generation_unavailable"
    status_code = 502

    def __init__(self, message: str, provider_error: str | None = None):
        super().__init__(message, recoverable=True)
        self.provider_error = provider_error
