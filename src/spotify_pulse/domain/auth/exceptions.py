"""Authorization exceptions for the Spotify OAuth flow."""

from typing import Optional


class AuthError(Exception):
    """Base exception for authorization failures."""

    pass


class NoCodeError(AuthError):
    """Raised when an authorization code is missing or the user denied access."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No authorization code provided")


class StateMismatchError(AuthError):
    """Raised when the callback state does not match the one we sent."""

    pass


class ProviderRejectedError(AuthError):
    """Raised when the token endpoint answers with a non-2xx status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Token endpoint rejected request ({status}): {body[:200]}")


class MissingRefreshTokenError(AuthError):
    """Raised when a refresh is requested without a refresh token."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No refresh token available")


class ReauthenticationRequired(AuthError):
    """Raised when the session can no longer be renewed automatically.

    The user has to log in again.
    """

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Spotify session expired. Please log in again.")
