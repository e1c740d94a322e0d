"""Auth domain - Spotify OAuth credentials and token exchange.

This domain handles:
- Credentials and the thread-safe credential store
- Authorization-code and refresh-token grants
- OAuth redirect parsing and the local callback listener
"""

from .authority import AUTHORIZE_URL, SPOTIFY_SCOPES, TOKEN_URL, TokenAuthority
from .callback import generate_state, parse_callback_url, wait_for_callback
from .credentials import DEFAULT_EXPIRES_IN, CredentialStore, Credentials
from .exceptions import (
    AuthError,
    MissingRefreshTokenError,
    NoCodeError,
    ProviderRejectedError,
    ReauthenticationRequired,
    StateMismatchError,
)

__all__ = [
    "AUTHORIZE_URL",
    "SPOTIFY_SCOPES",
    "TOKEN_URL",
    "TokenAuthority",
    "generate_state",
    "parse_callback_url",
    "wait_for_callback",
    "DEFAULT_EXPIRES_IN",
    "CredentialStore",
    "Credentials",
    "AuthError",
    "MissingRefreshTokenError",
    "NoCodeError",
    "ProviderRejectedError",
    "ReauthenticationRequired",
    "StateMismatchError",
]
