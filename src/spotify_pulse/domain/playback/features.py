"""
Single-slot cache of audio features for the current track.

Validity is tied to track identity, not time: the poller clears the slot
whenever the track changes or playback stops.
"""

from typing import Optional

from loguru import logger

from .models import AudioFeatureRecord


class FeatureCache:
    """Holds the audio-feature record for at most one track."""

    def __init__(self):
        self._track_id: Optional[str] = None
        self._record: Optional[AudioFeatureRecord] = None

    def get(self, track_id: str) -> Optional[AudioFeatureRecord]:
        """Return the cached record for track_id, or None."""
        if track_id is not None and track_id == self._track_id:
            return self._record
        return None

    def put(self, track_id: str, record: AudioFeatureRecord) -> None:
        """Store a record, replacing whatever track was cached before."""
        if record.track_id != track_id:
            raise ValueError(f"Record for {record.track_id} stored under {track_id}")
        self._track_id = track_id
        self._record = record
        logger.debug(f"Cached audio features for {track_id}")

    def clear(self) -> None:
        """Drop the cached record."""
        self._track_id = None
        self._record = None

    def __len__(self) -> int:
        return 0 if self._record is None else 1
