"""Exceptions raised by the session lifecycle and the request authorizer"""

from typing import Optional, Dict, Any


class ConfigurationError(RuntimeError):
    """Required configuration is missing or unusable; the app must not start"""


class AuthError(Exception):
    """Base exception for all auth/session failures reported to the client"""

    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "Authentication failed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class DuplicateUser(AuthError):
    status_code = 400
    error = "DUPLICATE_USER"
    default_message = "User already exists"


class UserNotFound(AuthError):
    status_code = 404
    error = "USER_NOT_FOUND"
    default_message = "User not found"


class InvalidCredentials(AuthError):
    status_code = 400
    error = "INVALID_CREDENTIALS"
    default_message = "Invalid email/password"


class MissingToken(AuthError):
    status_code = 401
    error = "MISSING_TOKEN"
    default_message = "No refresh token found"


class InvalidToken(AuthError):
    # One message for expired, tampered and malformed tokens alike
    status_code = 403
    error = "INVALID_TOKEN"
    default_message = "Invalid refresh token"


class StoreUnavailable(AuthError):
    """The credential store failed; the client may retry"""
    status_code = 500
    error = "STORE_UNAVAILABLE"
    default_message = "An unexpected error occurred"


class Unauthorized(AuthError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Unauthorized - No token provided"


class Forbidden(AuthError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "Forbidden - Invalid or expired access token"
