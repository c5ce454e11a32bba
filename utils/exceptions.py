"""
Account error taxonomy.

Every failure raised by the account layer carries an HTTP-like status and an
error code so api.errors can render the uniform error envelope.
"""
from __future__ import annotations


class AccountError(Exception):
    status = 500
    error = "INTERNAL_ERROR"

    def __init__(self, message: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.details = details


class ValidationError(AccountError):
    """Missing or blank required input."""
    status = 422
    error = "VALIDATION_ERROR"


class ConflictError(AccountError):
    """Duplicate username or email."""
    status = 409
    error = "CONFLICT"


class NotFoundError(AccountError):
    status = 404
    error = "NOT_FOUND"


class AuthError(AccountError):
    """Bad credential, or an invalid, expired or superseded token."""
    status = 401
    error = "UNAUTHORIZED"


class InternalError(AccountError):
    """Hashing, signing or store failure."""
    status = 500
    error = "INTERNAL_ERROR"
