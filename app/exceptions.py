# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error leaves the API as JSON with an `error` field and a status code.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class CirfproException(Exception):
    """
    Base exception for the CIRFPRO API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "CIRFPRO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Auth Exceptions
# =============================================================================

class NotAuthenticatedError(CirfproException):
    """Raised when the caller has no valid session."""

    def __init__(self, reason: str | None = None):
        super().__init__(
            message="Not authenticated",
            code="NOT_AUTHENTICATED",
            status_code=401,
            suggestion="Sign in again to obtain a fresh session",
            details={"reason": reason} if reason else None,
            headers={"WWW-Authenticate": "Bearer"},
        )


# =============================================================================
# Migration Exceptions
# =============================================================================

class PendingUserNotFoundError(CirfproException):
    """Raised when no pending registration exists for the caller."""

    def __init__(self, user_id: str):
        super().__init__(
            message="No pending user found",
            code="PENDING_USER_NOT_FOUND",
            status_code=404,
            details={"user_id": user_id}
        )


class UserCreationError(CirfproException):
    """Raised when the users row could not be written."""

    def __init__(self, user_id: str, error: str):
        super().__init__(
            message=error,
            code="USER_CREATION_FAILED",
            status_code=500,
            suggestion="The pending registration was kept; retry the migration",
            details={"user_id": user_id}
        )


class ProfileCreationError(CirfproException):
    """Raised when the role-specific profile could not be written."""

    def __init__(self, user_id: str, error: str, rolled_back: bool):
        super().__init__(
            message=error,
            code="PROFILE_CREATION_FAILED",
            status_code=500,
            suggestion=(
                "The pending registration was kept; retry the migration"
                if rolled_back
                else "The user row could not be rolled back; manual cleanup is required"
            ),
            details={"user_id": user_id, "user_rolled_back": rolled_back}
        )


# =============================================================================
# Registration Exceptions
# =============================================================================

class InputValidationError(CirfproException):
    """Raised when a submitted value fails validation after sanitization."""

    def __init__(self, field: str, error: str):
        super().__init__(
            message=error,
            code="VALIDATION_ERROR",
            status_code=400,
            details={"field": field}
        )


class RegistrationValidationError(InputValidationError):
    """Raised when sign-up input fails validation."""


class RegistrationError(CirfproException):
    """Raised when the auth provider or the pending store rejects a sign-up."""

    def __init__(self, error: str, status_code: int = 500):
        super().__init__(
            message=error,
            code="REGISTRATION_FAILED",
            status_code=status_code,
        )


# =============================================================================
# Invitation Exceptions
# =============================================================================

class ForbiddenError(CirfproException):
    """Raised when the caller lacks the profile or ownership an action needs."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            details=details
        )


class ResourceNotFoundError(CirfproException):
    """Raised when a referenced row does not exist (or is not the caller's)."""

    def __init__(self, message: str, code: str = "NOT_FOUND", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details=details
        )


class InvitationNotFoundError(ResourceNotFoundError):
    def __init__(self, invitation_id: str):
        super().__init__(
            "Invitation not found",
            code="INVITATION_NOT_FOUND",
            details={"invitation_id": invitation_id}
        )


class InvitationStatusError(CirfproException):
    """Raised when an invitation's status does not allow the requested action."""

    def __init__(self, action: str, status: str):
        super().__init__(
            message=f"Cannot {action} invitation with status: {status}",
            code="INVALID_INVITATION_STATUS",
            status_code=400,
            details={"status": status}
        )


class DatabaseError(CirfproException):
    """Raised when a Supabase read or write fails underneath an API operation."""

    def __init__(self, message: str, error: str | None = None):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
            details={"reason": error} if error else None
        )


class EmailDeliveryError(CirfproException):
    """Raised when the email provider rejected a message the flow depends on."""

    def __init__(self, message: str, error: Any = None):
        super().__init__(
            message=message,
            code="EMAIL_DELIVERY_FAILED",
            status_code=500,
            suggestion="Check the address and try again later",
            details={"provider_error": error} if error else None
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def cirfpro_exception_handler(
    request: Request,
    exc: CirfproException
) -> JSONResponse:
    """
    Convert CirfproException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle request validation errors.

    Converts validation errors to user-friendly messages.
    """
    errors = jsonable_encoder(exc.errors()) if hasattr(exc, "errors") else str(exc)
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )
