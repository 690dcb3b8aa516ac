from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Missing or malformed input."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, error_code="VALIDATION_ERROR", details=details)


class DateRangeError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=400, error_code="DATE_RANGE_ERROR")


class OverlapError(AppException):
    def __init__(self, message: str = "You already have a leave request for these dates",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, error_code="LEAVE_OVERLAP", details=details)


class PolicyViolation(AppException):
    """Request breaks a rule configured on the leave type."""
    def __init__(self, message: str):
        super().__init__(message, status_code=422, error_code="POLICY_VIOLATION")


class InsufficientBalance(AppException):
    def __init__(self, available: float, requested: float):
        super().__init__(
            "Insufficient leave balance",
            status_code=400,
            error_code="INSUFFICIENT_BALANCE",
            details={"available_balance": available, "requested": requested},
        )


class NotFound(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404, error_code="NOT_FOUND")


class InvalidTransition(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=409, error_code="INVALID_TRANSITION")


class MissingRemarks(AppException):
    def __init__(self, message: str = "Manager remarks are required for rejection"):
        super().__init__(message, status_code=400, error_code="MISSING_REMARKS")


class AlreadyCheckedIn(AppException):
    def __init__(self, message: str = "Already checked in today"):
        super().__init__(message, status_code=409, error_code="ALREADY_CHECKED_IN")


class AlreadyCheckedOut(AppException):
    def __init__(self, message: str = "Already checked out today"):
        super().__init__(message, status_code=409, error_code="ALREADY_CHECKED_OUT")


class NotCheckedIn(AppException):
    def __init__(self, message: str = "Please check in first"):
        super().__init__(message, status_code=400, error_code="NOT_CHECKED_IN")


class InvalidState(AppException):
    """Ledger arithmetic would leave a negative pending/used figure."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, error_code="INVALID_STATE", details=details)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )
