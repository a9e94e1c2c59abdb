"""Error handling module for hardstore.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "ACCOUNT_LOCKED",
        "message": "Account temporarily locked. Try again in 42 seconds."
    }
}

Usage:
    from hardstore.core.errors import ForbiddenError, UserNotFoundError

    # Raise with default message
    raise UserNotFoundError()

    # Raise with custom message
    raise ForbiddenError("Admin role required")
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    FORBIDDEN = "FORBIDDEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str
    # Optional extras (remaining_seconds, cooldown_until, attempts_remaining)
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class HardstoreError(Exception):
    """Base exception for hardstore.

    All hardstore specific exceptions should inherit from this class.
    This enables centralized exception handling in FastAPI.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code to return
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def details(self) -> dict[str, Any] | None:
        return None

    def headers(self) -> dict[str, str] | None:
        return None

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.code.value, message=self.message, details=self.details()
            )
        )


class UnauthorizedError(HardstoreError):
    """401 Unauthorized - Authentication required."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(ErrorCode.UNAUTHORIZED, message, 401)


class InvalidCredentialsError(HardstoreError):
    """401 Unauthorized - Wrong username or password.

    Unknown usernames and wrong passwords share this error and message.
    """

    def __init__(
        self,
        message: str = "Invalid username or password",
        attempts_remaining: int | None = None,
    ) -> None:
        self.attempts_remaining = attempts_remaining
        super().__init__(ErrorCode.INVALID_CREDENTIALS, message, 401)

    def details(self) -> dict[str, Any] | None:
        if self.attempts_remaining is None:
            return None
        return {"attempts_remaining": self.attempts_remaining}


class AccountLockedError(HardstoreError):
    """429 Too Many Requests - Account in login cooldown."""

    def __init__(
        self,
        retry_after: int,
        cooldown_until: datetime | None = None,
        message: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        self.cooldown_until = cooldown_until
        if message is None:
            message = (
                f"Account temporarily locked. Try again in {retry_after} seconds."
            )
        super().__init__(ErrorCode.ACCOUNT_LOCKED, message, 429)

    def details(self) -> dict[str, Any] | None:
        details: dict[str, Any] = {"remaining_seconds": self.retry_after}
        if self.cooldown_until is not None:
            details["cooldown_until"] = self.cooldown_until.isoformat()
        return details

    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.retry_after)}


class ForbiddenError(HardstoreError):
    """403 Forbidden - Permission denied."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(ErrorCode.FORBIDDEN, message, 403)


class UserNotFoundError(HardstoreError):
    """404 Not Found - User not found."""

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(ErrorCode.USER_NOT_FOUND, message, 404)


class UsernameTakenError(HardstoreError):
    """409 Conflict - Username already registered."""

    def __init__(self, message: str = "Username already exists") -> None:
        super().__init__(ErrorCode.USERNAME_TAKEN, message, 409)


class StoreUnavailableError(HardstoreError):
    """503 Service Unavailable - Persistence layer unreachable."""

    def __init__(self, message: str = "Store unavailable") -> None:
        super().__init__(ErrorCode.STORE_UNAVAILABLE, message, 503)
