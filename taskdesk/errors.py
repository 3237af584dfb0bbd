"""Error values raised by the services and rendered by the API boundary.

Each error knows its HTTP status, the envelope ``status`` and the public
``message``/``error`` pair returned to clients. ``detail`` carries internal
information (raw exception text) that only ever reaches the log.
"""
from typing import Optional, Union


class AppError(Exception):
    status_code = 500
    envelope_status = "error"
    message = "Request failed"

    def __init__(self, error: Union[str, dict, None] = None, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.error = error
        self.detail = detail


class ValidationFailed(AppError):
    status_code = 422
    envelope_status = "fail"
    message = "Validation error"

    def __init__(self, errors: dict, message: Optional[str] = None):
        super().__init__(error=errors, message=message)
        self.errors = errors


class AuthenticationFailed(AppError):
    status_code = 401
    envelope_status = "fail"
    message = "Unauthorized"


class PermissionDenied(AppError):
    status_code = 403
    envelope_status = "fail"
    message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    envelope_status = "fail"
    message = "Not found"


class NoData(NotFound):
    message = "No data found"


class UnexpectedError(AppError):
    status_code = 500
    envelope_status = "error"
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(error="Internal server error", message=message, detail=detail)


class AttachmentOrphaned(UnexpectedError):
    """The previous attachment was deleted but the replacement was not recorded."""

    message = "Attachment could not be replaced"

    def __init__(self, orphaned_path: Optional[str], message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message=message, detail=detail)
        self.error = "Attachment orphaned"
        self.orphaned_path = orphaned_path
