"""Shared fixtures for Spotify Pulse tests."""

import json
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from spotify_pulse.domain.auth.credentials import Credentials


class ImmediateExecutor(Executor):
    """Runs submitted work on the calling thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Holds submitted work until run_all() is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for future, fn, args, kwargs in pending:
            future.set_result(fn(*args, **kwargs))


def _response(status_code: int = 200, json_data: Any = None, text: Optional[str] = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if json_data is not None:
        response.json.return_value = json_data
        response.text = json.dumps(json_data)
    else:
        response.json.side_effect = ValueError("Expecting value")
        response.text = text or ""
    return response


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects."""
    return _response


@pytest.fixture
def playback_payload():
    """Factory for currently-playing payloads."""

    def build(
        track_id: str = "track-1",
        name: str = "Song One",
        progress_ms: int = 10000,
        duration_ms: int = 200000,
        is_playing: bool = True,
    ) -> dict:
        return {
            "is_playing": is_playing,
            "progress_ms": progress_ms,
            "item": {
                "id": track_id,
                "uri": f"spotify:track:{track_id}",
                "name": name,
                "duration_ms": duration_ms,
                "artists": [{"name": "Artist A"}, {"name": "Artist B"}],
                "album": {
                    "images": [
                        {"url": "https://img.example/large.jpg"},
                        {"url": "https://img.example/small.jpg"},
                    ]
                },
            },
        }

    return build


@pytest.fixture
def features_payload():
    """Factory for complete audio-features payloads."""

    def build(track_id: str = "track-1", **overrides) -> dict:
        payload = {
            "id": track_id,
            "tempo": 120.5,
            "energy": 0.8,
            "valence": 0.6,
            "danceability": 0.7,
            "acousticness": 0.1,
            "liveness": 0.2,
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def make_credentials():
    """Factory for Credentials with a one-hour expiry."""

    def build(access_token: str = "access-1", refresh_token: Optional[str] = "refresh-1") -> Credentials:
        return Credentials(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=datetime.now() + timedelta(hours=1),
        )

    return build


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def deferred_executor() -> DeferredExecutor:
    return DeferredExecutor()
