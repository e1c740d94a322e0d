"""Tests for snapshot rendering."""

import io

from rich.console import Console

from spotify_pulse.domain.playback.models import (
    NOTHING_PLAYING,
    STOPPED_PROGRESS,
    AudioFeatureRecord,
    ErrorKind,
    FeatureStatus,
    InterpolatedProgress,
    PlaybackObservation,
    Snapshot,
    SnapshotError,
)
from spotify_pulse.ui import LiveView, render_features, render_snapshot

OBSERVATION = PlaybackObservation(
    track_id="track-1",
    track_name="Song One",
    artist_names=("Artist A", "Artist B"),
    album_art_url="",
    duration_ms=200000,
    progress_ms=65000,
    is_playing=True,
)
RECORD = AudioFeatureRecord("track-1", 128.0, 0.81, 0.42, 0.7, 0.05, 0.12)


def _render(snapshot: Snapshot) -> str:
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(render_snapshot(snapshot))
    return console.file.getvalue()


def _playing(feature_status=FeatureStatus.READY, features=RECORD, error=None) -> Snapshot:
    return Snapshot(
        observation=OBSERVATION,
        progress=InterpolatedProgress(65000, True, 200000),
        features=features,
        feature_status=feature_status,
        error=error,
    )


class TestRenderSnapshot:
    def test_before_first_poll(self):
        assert "Connecting" in _render(Snapshot(None, STOPPED_PROGRESS, None, FeatureStatus.NONE))

    def test_playing_track(self):
        text = _render(_playing())
        assert "Song One" in text
        assert "Artist A, Artist B" in text
        assert "01:05 / 03:20" in text
        assert "128 BPM" in text
        assert "energy 0.81" in text

    def test_nothing_playing(self):
        text = _render(Snapshot(NOTHING_PLAYING, STOPPED_PROGRESS, None, FeatureStatus.NONE))
        assert "Nothing is currently playing" in text

    def test_error_line(self):
        error = SnapshotError(ErrorKind.AUTH, "Spotify session expired. Please log in again.")
        text = _render(_playing(error=error))
        assert "Song One" in text
        assert "Please log in again" in text


class TestRenderFeatures:
    def test_pending(self):
        line = render_features(_playing(FeatureStatus.PENDING, None))
        assert "Loading" in line.plain

    def test_unavailable(self):
        line = render_features(_playing(FeatureStatus.UNAVAILABLE, None))
        assert "unavailable" in line.plain

    def test_none(self):
        assert render_features(_playing(FeatureStatus.NONE, None)).plain == ""


class TestLiveView:
    def test_updates_on_snapshot(self):
        console = Console(file=io.StringIO(), width=100, color_system=None, force_terminal=False)
        view = LiveView(console=console)
        with view:
            view(_playing())
        assert "Song One" in console.file.getvalue()
