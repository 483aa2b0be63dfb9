"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; server.py renders them as
{"detail": message}.
"""


class CRMError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationRequired(CRMError):
    status_code = 401


class AuthorizationDenied(CRMError):
    status_code = 403


class NotFound(CRMError):
    status_code = 404


class ValidationFailed(CRMError):
    status_code = 400


class ConflictError(ValidationFailed):
    """Uniqueness violation or a lost optimistic-concurrency race."""

    status_code = 409
