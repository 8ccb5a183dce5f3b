"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a stable machine code, a public message and the HTTP
status the API answers with. Credential and token errors use fixed messages
so callers cannot tell which check failed.
"""
from __future__ import annotations


class AppError(Exception):
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"
    status = 500

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentialsError(AppError):
    error = "INVALID_CREDENTIALS"
    message = "Invalid credentials"
    status = 401


class InvalidTokenError(AppError):
    error = "INVALID_TOKEN"
    message = "Invalid or expired token"
    status = 401


class InvalidRefreshTokenError(InvalidTokenError):
    message = "Invalid or expired refresh token"


class InvalidResetTokenError(InvalidTokenError):
    message = "Invalid or expired reset token"
    status = 400


class InvalidInputError(AppError):
    error = "VALIDATION_ERROR"
    message = "Invalid input"
    status = 422


class ConflictError(AppError):
    error = "CONFLICT"
    message = "Conflict"
    status = 409


class NotFoundError(AppError):
    error = "NOT_FOUND"
    message = "Resource not found"
    status = 404


class ForbiddenError(AppError):
    error = "FORBIDDEN"
    message = "Insufficient role"
    status = 403


class DatabaseQueryError(AppError):
    """Backing store failure or timeout; safe for the caller to retry."""
    error = "DATABASE_ERROR"
    message = "Temporary failure, please try again"
    status = 503


class SigningError(AppError):
    """Token signer misconfiguration. Raised at start-up, not per request."""
