"""Messages consumed by the session coordinator thread."""

from dataclasses import dataclass
from typing import Optional

from ..playback.models import AudioFeatureRecord
from ..playback.poller import PollResult


@dataclass(frozen=True)
class PollCompleted:
    """A playback request finished (successfully or not)."""

    result: PollResult


@dataclass(frozen=True)
class Tick:
    """The interpolation timer fired."""


@dataclass(frozen=True)
class FeaturesFetched:
    """An audio-feature request finished; record is None on failure."""

    track_id: str
    request_seq: int
    record: Optional[AudioFeatureRecord]


class Shutdown:
    """Tells the coordinator loop to exit."""


SHUTDOWN = Shutdown()
