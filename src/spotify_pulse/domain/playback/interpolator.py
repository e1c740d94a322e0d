"""
Local progress clock between polls.

Server truth always wins: every poll snaps the clock to the reported
position. Between polls the clock advances by one tick period per tick while
the track is playing, and never runs past the track's duration.
"""

from .models import STOPPED_PROGRESS, InterpolatedProgress


def _clamp(progress_ms: int, duration_ms: int) -> int:
    return min(max(progress_ms, 0), max(duration_ms, 0))


class ProgressInterpolator:
    """Owns the current InterpolatedProgress value."""

    def __init__(self, tick_interval_ms: int = 100):
        if tick_interval_ms <= 0:
            raise ValueError(f"tick_interval_ms must be positive, got {tick_interval_ms}")
        self.tick_interval_ms = tick_interval_ms
        self._current = STOPPED_PROGRESS

    @property
    def current(self) -> InterpolatedProgress:
        return self._current

    @property
    def is_running(self) -> bool:
        """True while ticks should advance the clock."""
        return self._current.is_playing

    def reconcile(self, progress_ms: int, duration_ms: int, is_playing: bool) -> InterpolatedProgress:
        """Snap to the server-reported position (called on every poll)."""
        duration_ms = max(duration_ms, 0)
        self._current = InterpolatedProgress(
            local_progress_ms=_clamp(progress_ms, duration_ms),
            is_playing=is_playing,
            duration_ms=duration_ms,
        )
        return self._current

    def advance(self) -> InterpolatedProgress:
        """Advance by one tick period if playing; frozen otherwise."""
        current = self._current
        if not current.is_playing:
            return current

        self._current = InterpolatedProgress(
            local_progress_ms=_clamp(
                current.local_progress_ms + self.tick_interval_ms, current.duration_ms
            ),
            is_playing=True,
            duration_ms=current.duration_ms,
        )
        return self._current

    def freeze(self) -> InterpolatedProgress:
        """Stop advancing, keeping the last reconciled position."""
        current = self._current
        if current.is_playing:
            self._current = InterpolatedProgress(
                local_progress_ms=current.local_progress_ms,
                is_playing=False,
                duration_ms=current.duration_ms,
            )
        return self._current

    def reset(self) -> InterpolatedProgress:
        """Nothing is playing: zero the clock and stop."""
        self._current = STOPPED_PROGRESS
        return self._current
