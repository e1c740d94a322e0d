"""Playback exceptions raised by calls to the Spotify Web API."""

from typing import Optional


class PlaybackError(Exception):
    """Base exception for playback and feature lookups."""

    pass


class TransportError(PlaybackError):
    """Raised when a Spotify endpoint cannot be reached (network, timeout)."""

    pass


class AuthExpired(PlaybackError):
    """Raised when Spotify answers 401 to an authenticated call."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Access token rejected (401)")


class FetchError(PlaybackError):
    """Raised when Spotify answers with an unexpected non-2xx status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"Spotify returned HTTP {status}")


class ParseError(PlaybackError):
    """Raised when a 2xx response body cannot be understood."""

    pass


class FeatureUnavailable(PlaybackError):
    """Raised when audio features for a track cannot be obtained."""

    def __init__(self, track_id: str, reason: str):
        self.track_id = track_id
        self.reason = reason
        super().__init__(f"Audio features unavailable for {track_id}: {reason}")
