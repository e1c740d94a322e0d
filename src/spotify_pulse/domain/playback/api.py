"""
Spotify Web API calls for playback state and audio features.

Pure functions: each takes an access token and returns domain values, or
raises a PlaybackError subclass describing what went wrong. Refreshing the
token on AuthExpired is the session's job.
"""

import math
from typing import Any, Dict

import requests
from loguru import logger

from .exceptions import AuthExpired, FeatureUnavailable, FetchError, ParseError, TransportError
from .models import (
    FEATURE_FIELDS,
    NOTHING_PLAYING,
    AudioFeatureRecord,
    Observation,
    PlaybackObservation,
)

# Spotify API base URL
API_BASE = "https://api.spotify.com/v1"


def _get(url: str, access_token: str, timeout: float) -> requests.Response:
    """Authenticated GET, mapping network failures to TransportError."""
    try:
        return requests.get(
            url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.debug(f"Request to {url} failed: {e}")
        raise TransportError(str(e)) from e


def get_currently_playing(
    access_token: str, timeout: float = 30.0, api_base: str = API_BASE
) -> Observation:
    """Fetch what the user is playing right now.

    Args:
        access_token: Bearer token
        timeout: Request timeout in seconds
        api_base: Spotify API base URL

    Returns:
        PlaybackObservation, or NOTHING_PLAYING for 204 / no item

    Raises:
        AuthExpired: On 401
        FetchError: On any other non-2xx status
        ParseError: On a 2xx body that is not a usable playback payload
        TransportError: If Spotify cannot be reached
    """
    response = _get(f"{api_base}/me/player/currently-playing", access_token, timeout)

    if response.status_code == 204:  # No content = nothing playing
        return NOTHING_PLAYING
    if response.status_code == 401:
        raise AuthExpired()
    if not 200 <= response.status_code < 300:
        raise FetchError(response.status_code)

    try:
        payload = response.json()
    except ValueError as e:
        raise ParseError(f"Invalid JSON from Spotify: {e}") from e

    return parse_playback(payload)


def parse_playback(payload: Any) -> Observation:
    """Convert a currently-playing payload into an observation.

    Raises:
        ParseError: If required fields are missing or have the wrong type
    """
    if not isinstance(payload, dict):
        raise ParseError("Playback payload is not a JSON object")

    item = payload.get("item")
    if item is None:
        # Ads and private sessions report playback without an item
        return NOTHING_PLAYING
    if not isinstance(item, dict):
        raise ParseError("Playback item is not a JSON object")

    # Local files have no id; their uri is still stable
    track_id = item.get("id") or item.get("uri")
    if not isinstance(track_id, str) or not track_id:
        raise ParseError("Playback item has no track identity")

    name = item.get("name")
    if not isinstance(name, str):
        raise ParseError(f"Track {track_id} has no name")

    duration_ms = item.get("duration_ms")
    if not _is_int(duration_ms) or duration_ms < 0:
        raise ParseError(f"Track {track_id} has invalid duration_ms: {duration_ms!r}")

    progress_ms = payload.get("progress_ms")
    if progress_ms is None:
        progress_ms = 0
    elif not _is_int(progress_ms):
        raise ParseError(f"Invalid progress_ms: {progress_ms!r}")

    is_playing = payload.get("is_playing", False)
    if not isinstance(is_playing, bool):
        raise ParseError(f"Invalid is_playing: {is_playing!r}")

    artists = item.get("artists") or []
    images = (item.get("album") or {}).get("images") or []

    return PlaybackObservation(
        track_id=track_id,
        track_name=name,
        artist_names=tuple(
            a["name"] for a in artists if isinstance(a, dict) and isinstance(a.get("name"), str)
        ),
        album_art_url=next(
            (img["url"] for img in images if isinstance(img, dict) and img.get("url")), ""
        ),
        duration_ms=duration_ms,
        progress_ms=min(max(progress_ms, 0), duration_ms),
        is_playing=is_playing,
    )


def get_audio_features(
    access_token: str, track_id: str, timeout: float = 30.0, api_base: str = API_BASE
) -> AudioFeatureRecord:
    """Fetch audio features for a track.

    Args:
        access_token: Bearer token
        track_id: Spotify track ID
        timeout: Request timeout in seconds
        api_base: Spotify API base URL

    Returns:
        Complete AudioFeatureRecord

    Raises:
        AuthExpired: On 401
        FeatureUnavailable: On any other failure status or an incomplete record
        TransportError: If Spotify cannot be reached
    """
    response = _get(f"{api_base}/audio-features/{track_id}", access_token, timeout)

    if response.status_code == 401:
        raise AuthExpired()
    if not 200 <= response.status_code < 300:
        raise FeatureUnavailable(track_id, f"HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise FeatureUnavailable(track_id, "invalid JSON") from e

    return parse_audio_features(track_id, payload)


def parse_audio_features(track_id: str, payload: Any) -> AudioFeatureRecord:
    """Validate an audio-features payload.

    A record is all-or-nothing: any missing, non-numeric or out-of-range field
    makes the whole record unavailable.

    Raises:
        FeatureUnavailable: If the payload is incomplete or malformed
    """
    if not isinstance(payload, dict):
        raise FeatureUnavailable(track_id, "payload is not a JSON object")

    values: Dict[str, float] = {}
    for field_name in FEATURE_FIELDS:
        value = payload.get(field_name)
        if not _is_number(value):
            raise FeatureUnavailable(track_id, f"missing or non-numeric {field_name}")
        values[field_name] = float(value)

    if values["tempo"] <= 0:
        raise FeatureUnavailable(track_id, f"tempo out of range: {values['tempo']}")
    for field_name in FEATURE_FIELDS[1:]:
        if not 0.0 <= values[field_name] <= 1.0:
            raise FeatureUnavailable(
                track_id, f"{field_name} out of range: {values[field_name]}"
            )

    return AudioFeatureRecord(
        track_id=track_id,
        tempo_bpm=values["tempo"],
        energy=values["energy"],
        valence=values["valence"],
        danceability=values["danceability"],
        acousticness=values["acousticness"],
        liveness=values["liveness"],
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
