from __future__ import annotations

from typing import Optional, Sequence


class AuthError(Exception):
    """Base class for every error raised by enhancer_auth."""

    default_message = "Authentication error"
    default_error_code: Optional[str] = None

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code
        self.error_code = error_code or self.default_error_code
        super().__init__(self.message)


class AuthenticationError(AuthError):
    """Raised when authentication fails."""

    default_message = "Authentication failed"
    default_error_code = "AUTHENTICATION_FAILED"

    def __init__(self, message: Optional[str] = None, error_code: Optional[str] = None) -> None:
        super().__init__(message, 401, error_code)


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""

    default_message = "Token has expired"
    default_error_code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Raised when token is malformed or invalid."""

    default_message = "Invalid token"
    default_error_code = "INVALID_TOKEN"


class ServiceAuthError(AuthenticationError):
    """Raised when service-to-service (basic auth) credentials are rejected."""

    default_message = "Service authentication failed"
    default_error_code = "SERVICE_AUTH_FAILED"


class AuthorizationError(AuthError):
    """Raised when a token lacks the required scopes."""

    default_message = "Insufficient permissions"
    default_error_code = "FORBIDDEN"

    def __init__(
        self,
        message: Optional[str] = None,
        required_scopes: Sequence[str] = (),
        granted_scopes: Sequence[str] = (),
    ) -> None:
        super().__init__(message, 403)
        self.required_scopes = tuple(required_scopes)
        self.granted_scopes = tuple(granted_scopes)


class NetworkError(AuthError):
    """
    Raised when the auth backend cannot be reached.

    `attempts` is the number of tries made before giving up and
    `last_error` the description of the final underlying failure.
    """

    default_message = "Network error occurred"
    default_error_code = "NETWORK_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        attempts: int = 1,
        last_error: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message, None, error_code)
        self.attempts = attempts
        self.last_error = last_error


class RateLimitError(AuthError):
    """Raised when the auth backend answers 429."""

    default_message = "Rate limit exceeded"
    default_error_code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        message: Optional[str] = None,
        retry_after: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message, 429, error_code)
        self.retry_after = retry_after


class ConfigurationError(AuthError, ValueError):
    """Raised when client settings are missing or invalid."""

    default_message = "Configuration validation failed"
    default_error_code = "INVALID_CONFIGURATION"

    def __init__(self, message: Optional[str] = None, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.errors = tuple(errors)
