"""
Spotify OAuth 2.0 token exchange.

Turns authorization codes and refresh tokens into Credentials. Every call is
a single request: retrying is the caller's decision.
"""

from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode

import requests
from loguru import logger

from ..playback.exceptions import TransportError
from .credentials import Credentials
from .exceptions import MissingRefreshTokenError, NoCodeError, ProviderRejectedError

# Spotify OAuth URLs
AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"

# Scopes needed to read what is playing
SPOTIFY_SCOPES = [
    "user-read-playback-state",
    "user-read-currently-playing",
]


class TokenAuthority:
    """Exchanges codes and refresh tokens against the Spotify token endpoint."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 30.0,
        token_url: str = TOKEN_URL,
        authorize_url: str = AUTHORIZE_URL,
        scopes: Optional[Iterable[str]] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.token_url = token_url
        self.authorize_base_url = authorize_url
        self.scopes = list(scopes) if scopes is not None else list(SPOTIFY_SCOPES)

    def authorize_url(self, state: Optional[str] = None, show_dialog: bool = True) -> str:
        """Build the URL the user opens to grant access.

        Args:
            state: Opaque CSRF value echoed back on the callback
            show_dialog: Force the consent dialog even if already approved

        Returns:
            Full authorization URL
        """
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "show_dialog": "true" if show_dialog else "false",
        }
        if state:
            params["state"] = state
        return f"{self.authorize_base_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Credentials:
        """Exchange an authorization code for credentials.

        Args:
            code: Authorization code from the OAuth callback

        Returns:
            Credentials with access token, refresh token and expiry

        Raises:
            NoCodeError: If code is empty
            ProviderRejectedError: If Spotify rejects the exchange
            TransportError: If the token endpoint cannot be reached
        """
        if not code:
            raise NoCodeError()

        logger.debug("Exchanging authorization code for tokens")
        token_data = self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            }
        )
        credentials = Credentials.from_token_response(token_data)
        logger.info(f"Spotify authorization complete, token expires: {credentials.expires_at}")
        return credentials

    def refresh(self, refresh_token: Optional[str]) -> Credentials:
        """Obtain a new access token using a refresh token.

        The refresh token is carried over unless Spotify issues a new one.

        Args:
            refresh_token: Current refresh token

        Returns:
            Fresh Credentials

        Raises:
            MissingRefreshTokenError: If refresh_token is empty
            ProviderRejectedError: If Spotify rejects the refresh
            TransportError: If the token endpoint cannot be reached
        """
        if not refresh_token:
            raise MissingRefreshTokenError()

        logger.debug("Refreshing Spotify access token")
        token_data = self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            }
        )
        credentials = Credentials.from_token_response(
            token_data, previous_refresh_token=refresh_token
        )
        if credentials.refresh_token != refresh_token:
            logger.debug("Spotify rotated the refresh token")
        logger.info(f"Spotify token refreshed, expires: {credentials.expires_at}")
        return credentials

    def _post_token(self, form: Dict[str, str]) -> Dict[str, Any]:
        """POST a form-encoded grant to the token endpoint and return its JSON."""
        try:
            response = requests.post(
                self.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Token endpoint unreachable: {e}")
            raise TransportError(f"Token endpoint unreachable: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(
                f"Token endpoint rejected {form['grant_type']} grant: "
                f"{response.status_code} {response.text[:200]}"
            )
            raise ProviderRejectedError(response.status_code, response.text)

        try:
            token_data = response.json()
        except ValueError as e:
            raise ProviderRejectedError(response.status_code, response.text) from e

        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            raise ProviderRejectedError(response.status_code, response.text)

        return token_data
