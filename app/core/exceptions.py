"""
Domain errors raised by the service layer.

Each carries the HTTP status and the machine-readable code that the
handlers in app.main put into the `errors` list of the response body.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    status_code: int = 400
    error_code: str = "BUSINESS_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details


class BusinessRuleError(AppException):
    """Well-formed request that breaks a ledger or workflow rule, e.g. INSUFFICIENT_BALANCE or NOT_PENDING."""

    def __init__(self, message: str, error_code: str = "BUSINESS_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code=error_code, details=details)


class NotFoundError(AppException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class AuthenticationError(AppException):
    status_code = 401
    error_code = "AUTH_FAILED"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class AccessDeniedError(AppException):
    """Caller is authenticated but may not touch this user's data or request."""
    status_code = 403
    error_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)
