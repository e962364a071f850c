"""
Domain errors raised by the service layer.

Each error carries a human-readable message that is shown to the operator
verbatim, plus the HTTP status the API answers with. Handlers registered in
main.py convert them into JSON responses.
"""
from typing import Optional


class AppError(Exception):
    """Base class for all application errors."""

    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing required field, malformed URL, oversized file."""

    status_code = 400
    message = "Invalid input"


class AuthError(AppError):
    """No authenticated caller, bad credentials, duplicate account."""

    status_code = 401
    message = "Authentication required"


class UserNotFoundError(AuthError):
    status_code = 400
    message = "User not found"


class InvalidCredentialsError(AuthError):
    status_code = 400
    message = "Invalid credentials"


class EmailConflictError(AuthError):
    status_code = 409
    message = "Email already exists"


class StoreError(AppError):
    """Database or object storage failure."""

    status_code = 503
    message = "Storage is unavailable. Please try again."


class PermissionDeniedError(StoreError):
    status_code = 403
    message = "Permission denied"


class NotFoundError(StoreError):
    status_code = 404
    message = "Record not found"


class AggregateSubmissionError(AppError):
    """Any failure during the KYC multi-document submission."""

    status_code = 502
    message = "Submission failed"
