"""
Error types raised by the console services.
Each error carries the HTTP status and the user-facing message the API returns.
"""
from typing import Any, Dict, Optional


class ConsoleError(Exception):
    """Base error for a single failed user action. Never fatal to the process."""

    status_code = 500
    error = "Request failed"

    def __init__(self, error: Optional[str] = None, detail: Any = None):
        self.error = error or self.error
        self.detail = detail
        super().__init__(self.error)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "detail": self.detail if self.detail is not None else self.error}


class DraftValidationError(ConsoleError):
    """Required draft fields are missing. Raised before any network call."""

    status_code = 400
    error = "Validation error"

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = field_errors
        super().__init__(detail=field_errors)


class UnsupportedFileTypeError(ConsoleError):
    status_code = 400
    error = "Unsupported file type"


class FileTooLargeError(ConsoleError):
    status_code = 413
    error = "File too large"


class UploadFailedError(ConsoleError):
    status_code = 502
    error = "Upload failed"


class AdminAccessError(ConsoleError):
    status_code = 403
    error = "Admin access required"


class ContentNotFoundError(ConsoleError):
    status_code = 404
    error = "Content not found"


class RecordNotFoundError(ConsoleError):
    status_code = 404
    error = "Record not found"


class MutationError(ConsoleError):
    """Insert, update or delete against the content repository failed."""

    status_code = 500


class SubmissionInProgressError(ConsoleError):
    status_code = 409
    error = "Submission already in progress"


class RoleLookupError(Exception):
    """The user_roles query failed. Distinct from finding no admin row."""
