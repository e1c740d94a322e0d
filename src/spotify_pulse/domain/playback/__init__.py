"""Playback domain - what is playing, how far along, and how it sounds.

This domain handles:
- Spotify currently-playing and audio-features requests
- Track-change detection and the single-slot feature cache
- Local progress interpolation between polls
"""

from . import api
from .exceptions import (
    AuthExpired,
    FeatureUnavailable,
    FetchError,
    ParseError,
    PlaybackError,
    TransportError,
)
from .features import FeatureCache
from .interpolator import ProgressInterpolator
from .models import (
    NOTHING_PLAYING,
    STOPPED_PROGRESS,
    AudioFeatureRecord,
    ErrorKind,
    FeatureStatus,
    InterpolatedProgress,
    NothingPlaying,
    Observation,
    PlaybackObservation,
    Snapshot,
    SnapshotError,
    format_time,
)
from .poller import PlaybackPoller, PollerState, PollResult

__all__ = [
    "api",
    "AuthExpired",
    "FeatureUnavailable",
    "FetchError",
    "ParseError",
    "PlaybackError",
    "TransportError",
    "FeatureCache",
    "ProgressInterpolator",
    "NOTHING_PLAYING",
    "STOPPED_PROGRESS",
    "AudioFeatureRecord",
    "ErrorKind",
    "FeatureStatus",
    "InterpolatedProgress",
    "NothingPlaying",
    "Observation",
    "PlaybackObservation",
    "Snapshot",
    "SnapshotError",
    "format_time",
    "PlaybackPoller",
    "PollerState",
    "PollResult",
]
