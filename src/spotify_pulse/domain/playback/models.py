"""
Playback domain models.

Immutable values describing what is playing, how far along it is, and the
audio features of the current track. Each poll or tick replaces them wholesale.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class PlaybackObservation:
    """One poll's view of the currently playing track."""

    track_id: str
    track_name: str
    artist_names: Tuple[str, ...]
    album_art_url: str  # "" when Spotify lists no images
    duration_ms: int
    progress_ms: int  # Clamped to [0, duration_ms]
    is_playing: bool

    @property
    def artist_line(self) -> str:
        """Artists joined for display."""
        return ", ".join(self.artist_names)


@dataclass(frozen=True)
class NothingPlaying:
    """Sentinel observation for "no active playback"."""

    def __repr__(self) -> str:
        return "NOTHING_PLAYING"


NOTHING_PLAYING = NothingPlaying()

Observation = Union[PlaybackObservation, NothingPlaying]


# Fields an audio-feature record must carry, in API order
FEATURE_FIELDS = ("tempo", "energy", "valence", "danceability", "acousticness", "liveness")


@dataclass(frozen=True)
class AudioFeatureRecord:
    """Numeric audio descriptors for a single track."""

    track_id: str
    tempo_bpm: float
    energy: float
    valence: float
    danceability: float
    acousticness: float
    liveness: float


@dataclass(frozen=True)
class InterpolatedProgress:
    """Locally advancing progress clock for the current track."""

    local_progress_ms: int
    is_playing: bool
    duration_ms: int

    @property
    def fraction(self) -> float:
        """Progress as a fraction in [0, 1] (0 when duration is unknown)."""
        if self.duration_ms <= 0:
            return 0.0
        return self.local_progress_ms / self.duration_ms


STOPPED_PROGRESS = InterpolatedProgress(local_progress_ms=0, is_playing=False, duration_ms=0)


class FeatureStatus(Enum):
    """Where the current track's audio features stand."""

    NONE = "none"  # Nothing playing
    PENDING = "pending"  # Fetch in flight
    READY = "ready"
    UNAVAILABLE = "unavailable"


class ErrorKind(Enum):
    """Failure categories surfaced on a snapshot."""

    TRANSPORT = "transport"  # Network failure, retried next poll
    FETCH = "fetch"  # Unexpected HTTP status, retried next poll
    PARSE = "parse"  # Malformed body, retried next poll
    AUTH = "auth"  # Must log in again


@dataclass(frozen=True)
class SnapshotError:
    """Error attached to a snapshot."""

    kind: ErrorKind
    message: str
    status: Optional[int] = None


@dataclass(frozen=True)
class Snapshot:
    """State delivered to the presentation layer on every poll and tick.

    observation is None until the first successful poll.
    """

    observation: Optional[Observation]
    progress: InterpolatedProgress
    features: Optional[AudioFeatureRecord]
    feature_status: FeatureStatus
    error: Optional[SnapshotError] = None

    @property
    def nothing_playing(self) -> bool:
        return isinstance(self.observation, NothingPlaying)

    @property
    def requires_login(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.AUTH


def format_time(ms: int) -> str:
    """Format milliseconds as MM:SS."""
    if ms < 0:
        return "00:00"

    seconds = ms // 1000
    minutes = seconds // 60
    secs = seconds % 60
    return f"{minutes:02d}:{secs:02d}"
