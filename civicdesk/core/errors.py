"""
Error taxonomy for CivicDesk.

Every error carries a short machine-readable ``kind`` and the HTTP status the
request layer maps it to. Messages are meant for end users, so they never
include stack traces or storage internals.
"""


class CivicDeskError(Exception):
    """Base class for all domain errors."""

    kind = "internal"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class Unauthorized(CivicDeskError):
    """Missing or invalid credential."""
    kind = "unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(CivicDeskError):
    """Valid credential, insufficient role."""
    kind = "forbidden"
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(CivicDeskError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(CivicDeskError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class ValidationFailed(CivicDeskError):
    """Missing or malformed required field."""
    kind = "validation"
    status_code = 400
    default_message = "Invalid request"


class InternalError(CivicDeskError):
    pass


class StorageError(InternalError):
    """Key-value store or object storage failure."""
    default_message = "Storage operation failed"
