"""
Credentials and the in-memory credential store.

Tokens live only for the lifetime of the process; nothing here touches disk.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

DEFAULT_EXPIRES_IN = 3600  # Seconds, used when the provider omits expires_in


@dataclass(frozen=True)
class Credentials:
    """OAuth credentials for the current session."""

    access_token: str
    refresh_token: Optional[str]
    expires_at: datetime

    @classmethod
    def from_token_response(
        cls,
        token_data: Dict[str, Any],
        previous_refresh_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Credentials":
        """Build credentials from a token endpoint JSON response.

        Args:
            token_data: Parsed response with access_token, optional refresh_token
                and expires_in
            previous_refresh_token: Kept when the provider does not rotate the
                refresh token
            now: Reference time for the expiry (default: current time)

        Returns:
            New Credentials

        Raises:
            KeyError: If access_token is missing
        """
        now = now or datetime.now()

        expires_in = token_data.get("expires_in")
        if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool):
            expires_in = DEFAULT_EXPIRES_IN

        return cls(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token") or previous_refresh_token,
            expires_at=now + timedelta(seconds=expires_in),
        )

    def is_expired(self, buffer: timedelta = timedelta(0), now: Optional[datetime] = None) -> bool:
        """Check whether the access token is past its advertised expiry.

        Advisory only: a 401 from the API is what actually triggers a refresh.
        """
        now = now or datetime.now()
        return now >= (self.expires_at - buffer)

    def __repr__(self) -> str:
        # Keep tokens out of logs and tracebacks
        return (
            f"Credentials(access_token=...{self.access_token[-4:]}, "
            f"refresh_token={'set' if self.refresh_token else None}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


class CredentialStore:
    """Thread-safe holder for the session's current credentials.

    The poll worker, feature workers and the refresh path all read and write
    through this one instance.
    """

    def __init__(self, credentials: Optional[Credentials] = None):
        self._lock = threading.Lock()
        self._credentials = credentials

    def get(self) -> Optional[Credentials]:
        """Return the current credentials, or None when logged out."""
        with self._lock:
            return self._credentials

    def set(self, credentials: Credentials) -> None:
        """Replace the current credentials."""
        with self._lock:
            self._credentials = credentials

    def clear(self) -> None:
        """Forget the current credentials."""
        with self._lock:
            self._credentials = None
