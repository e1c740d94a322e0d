"""
Playback poller - classifies each poll and decides what to refresh.

Split in two halves so the network call never runs on the coordinator:
- fetch(): performs the request and turns the outcome into a PollResult
  (runs on the poll worker thread)
- apply(): compares the result with the previous observation, updates the
  feature cache and progress clock, and builds a Snapshot (runs on the
  coordinator thread, which owns all mutable playback state)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from ..auth.exceptions import AuthError
from .exceptions import FetchError, ParseError, TransportError
from .features import FeatureCache
from .interpolator import ProgressInterpolator
from .models import (
    NOTHING_PLAYING,
    AudioFeatureRecord,
    ErrorKind,
    FeatureStatus,
    NothingPlaying,
    Observation,
    PlaybackObservation,
    Snapshot,
    SnapshotError,
)


class PollerState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SETTLED = "settled"


@dataclass(frozen=True)
class PollResult:
    """Outcome of one playback request: an observation or an error."""

    observation: Optional[Observation] = None
    error: Optional[SnapshotError] = None


# (track_id, request_seq) -> None; must not block
FeatureRequester = Callable[[str, int], None]


class PlaybackPoller:
    """State machine over Idle -> Fetching -> Settled, driven by poll ticks."""

    def __init__(
        self,
        fetch_playback: Callable[[], Observation],
        feature_cache: FeatureCache,
        interpolator: ProgressInterpolator,
        request_features: FeatureRequester,
    ):
        """
        Args:
            fetch_playback: Returns the current observation; raises PlaybackError
                or AuthError subclasses on failure
            feature_cache: Single-slot audio-feature cache
            interpolator: Progress clock reconciled on each poll
            request_features: Schedules an asynchronous feature fetch
        """
        self._fetch_playback = fetch_playback
        self._feature_cache = feature_cache
        self._interpolator = interpolator
        self._request_features = request_features

        self.state = PollerState.IDLE
        self._observation: Optional[Observation] = None
        self._track_id: Optional[str] = None
        self._feature_status = FeatureStatus.NONE
        self._feature_seq = 0
        self._error: Optional[SnapshotError] = None

    @property
    def current_track_id(self) -> Optional[str]:
        return self._track_id

    def fetch(self) -> PollResult:
        """Request current playback and classify the outcome.

        AuthExpired is not handled here: it propagates so the session can
        refresh and retry.
        """
        self.state = PollerState.FETCHING
        try:
            observation = self._fetch_playback()
        except AuthError as e:
            logger.warning(f"Playback poll needs re-authentication: {e}")
            return PollResult(error=SnapshotError(ErrorKind.AUTH, str(e)))
        except FetchError as e:
            logger.warning(f"Playback poll failed: HTTP {e.status}")
            return PollResult(error=SnapshotError(ErrorKind.FETCH, str(e), status=e.status))
        except ParseError as e:
            logger.warning(f"Unparsable playback response: {e}")
            return PollResult(error=SnapshotError(ErrorKind.PARSE, str(e)))
        except TransportError as e:
            logger.warning(f"Playback poll transport failure: {e}")
            return PollResult(error=SnapshotError(ErrorKind.TRANSPORT, str(e)))

        return PollResult(observation=observation)

    def apply(self, result: PollResult) -> Snapshot:
        """Fold a poll result into the current state and return the new snapshot."""
        self.state = PollerState.SETTLED

        if result.error is not None:
            # Keep the previous track identity; the next poll retries naturally
            self._error = result.error
            if result.error.kind is ErrorKind.AUTH:
                self._interpolator.freeze()
            return self.snapshot()

        self._error = None
        observation = result.observation

        if observation is None or isinstance(observation, NothingPlaying):
            if self._track_id is not None:
                logger.info("Playback stopped")
            self._observation = NOTHING_PLAYING
            self._track_id = None
            self._feature_cache.clear()
            self._feature_status = FeatureStatus.NONE
            self._interpolator.reset()
            return self.snapshot()

        if observation.track_id != self._track_id:
            self._on_track_changed(observation)
        else:
            self._on_same_track(observation)

        return self.snapshot()

    def _on_track_changed(self, observation: PlaybackObservation) -> None:
        logger.info(
            f"Now playing: {observation.artist_line} - {observation.track_name} "
            f"({observation.track_id})"
        )
        self._observation = observation
        self._track_id = observation.track_id
        self._feature_cache.clear()
        self._interpolator.reconcile(
            observation.progress_ms, observation.duration_ms, observation.is_playing
        )

        self._feature_seq += 1
        self._feature_status = FeatureStatus.PENDING
        self._request_features(observation.track_id, self._feature_seq)

    def _on_same_track(self, observation: PlaybackObservation) -> None:
        # Same identity (including a replay from 0): metadata and features stay put
        previous = self._observation
        if isinstance(previous, PlaybackObservation):
            self._observation = replace(
                previous,
                duration_ms=observation.duration_ms,
                progress_ms=observation.progress_ms,
                is_playing=observation.is_playing,
            )
        else:
            self._observation = observation
        self._interpolator.reconcile(
            observation.progress_ms, observation.duration_ms, observation.is_playing
        )

    def apply_features(
        self, track_id: str, request_seq: int, record: Optional[AudioFeatureRecord]
    ) -> Optional[Snapshot]:
        """Store a finished feature fetch if it still belongs to the current track.

        Args:
            track_id: Track the fetch was issued for
            request_seq: Sequence number handed to request_features
            record: Fetched record, or None if the fetch failed

        Returns:
            New snapshot, or None when the result was stale and discarded
        """
        if track_id != self._track_id or request_seq != self._feature_seq:
            logger.debug(f"Discarding stale audio features for {track_id}")
            return None

        if record is None:
            self._feature_status = FeatureStatus.UNAVAILABLE
        else:
            self._feature_cache.put(track_id, record)
            self._feature_status = FeatureStatus.READY
        return self.snapshot()

    def tick(self) -> Optional[Snapshot]:
        """Advance the progress clock; None when nothing is advancing."""
        if not self._interpolator.is_running:
            return None
        self._interpolator.advance()
        return self.snapshot()

    def snapshot(self) -> Snapshot:
        """Current state as an immutable snapshot."""
        return Snapshot(
            observation=self._observation,
            progress=self._interpolator.current,
            features=self._feature_cache.get(self._track_id) if self._track_id else None,
            feature_status=self._feature_status,
            error=self._error,
        )

    def reset(self) -> None:
        """Forget everything observed (logout / new session)."""
        self.state = PollerState.IDLE
        self._observation = None
        self._track_id = None
        self._feature_status = FeatureStatus.NONE
        self._feature_seq += 1  # Invalidate any fetch still in flight
        self._error = None
        self._feature_cache.clear()
        self._interpolator.reset()
