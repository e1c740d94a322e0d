"""
Console rendering of session snapshots.

A passive subscriber: it only reads the snapshots the session emits.
"""

from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.progress_bar import ProgressBar
from rich.text import Text

from spotify_pulse.domain.playback.models import (
    ErrorKind,
    STOPPED_PROGRESS,
    FeatureStatus,
    PlaybackObservation,
    Snapshot,
    format_time,
)

BAR_WIDTH = 40


def render_features(snapshot: Snapshot) -> Text:
    """One line of audio descriptors, or their status."""
    features = snapshot.features
    if snapshot.feature_status is FeatureStatus.READY and features is not None:
        return Text(
            f"{features.tempo_bpm:.0f} BPM  "
            f"energy {features.energy:.2f}  valence {features.valence:.2f}  "
            f"dance {features.danceability:.2f}  acoustic {features.acousticness:.2f}  "
            f"live {features.liveness:.2f}",
            style="green",
        )
    if snapshot.feature_status is FeatureStatus.PENDING:
        return Text("Loading audio features…", style="dim")
    if snapshot.feature_status is FeatureStatus.UNAVAILABLE:
        return Text("Audio features unavailable", style="dim")
    return Text("")


def render_snapshot(snapshot: Snapshot) -> Group:
    """Build the renderable for one snapshot."""
    lines = []
    observation = snapshot.observation

    if observation is None:
        lines.append(Text("Connecting to Spotify…", style="dim"))
    elif isinstance(observation, PlaybackObservation):
        progress = snapshot.progress
        icon = "▶" if progress.is_playing else "⏸"
        lines.append(Text(f"{icon} {observation.track_name}", style="bold"))
        lines.append(Text(observation.artist_line, style="cyan"))
        lines.append(
            ProgressBar(
                total=max(progress.duration_ms, 1),
                completed=progress.local_progress_ms,
                width=BAR_WIDTH,
            )
        )
        lines.append(
            Text(
                f"{format_time(progress.local_progress_ms)} / "
                f"{format_time(progress.duration_ms)}"
            )
        )
        lines.append(render_features(snapshot))
    else:
        lines.append(Text("Nothing is currently playing.", style="yellow"))

    error = snapshot.error
    if error is not None:
        style = "bold red" if error.kind is ErrorKind.AUTH else "red"
        lines.append(Text(error.message, style=style))

    return Group(*lines)


class LiveView:
    """Redraws the terminal whenever the session emits a snapshot."""

    def __init__(self, console: Optional[Console] = None, refresh_per_second: float = 10):
        self.live = Live(
            render_snapshot(Snapshot(None, STOPPED_PROGRESS, None, FeatureStatus.NONE)),
            console=console,
            refresh_per_second=refresh_per_second,
            transient=False,
        )

    def __enter__(self) -> "LiveView":
        self.live.__enter__()
        return self

    def __exit__(self, *exc_info) -> None:
        self.live.__exit__(*exc_info)

    def __call__(self, snapshot: Snapshot) -> None:
        self.live.update(render_snapshot(snapshot))
