"""Tests for the Spotify Web API playback and audio-feature calls."""

from unittest.mock import patch

import pytest
import requests

from spotify_pulse.domain.playback import api
from spotify_pulse.domain.playback.exceptions import (
    AuthExpired,
    FeatureUnavailable,
    FetchError,
    ParseError,
    TransportError,
)
from spotify_pulse.domain.playback.models import NOTHING_PLAYING, PlaybackObservation

GET = "spotify_pulse.domain.playback.api.requests.get"


class TestGetCurrentlyPlaying:
    """Tests for HTTP status classification."""

    def test_playing(self, make_response, playback_payload):
        with patch(GET, return_value=make_response(200, playback_payload())) as mock_get:
            observation = api.get_currently_playing("token-1", timeout=7.0)

        assert isinstance(observation, PlaybackObservation)
        assert observation.track_id == "track-1"

        args, kwargs = mock_get.call_args
        assert args[0] == "https://api.spotify.com/v1/me/player/currently-playing"
        assert kwargs["headers"] == {"Authorization": "Bearer token-1"}
        assert kwargs["timeout"] == 7.0

    def test_no_content_is_nothing_playing(self, make_response):
        with patch(GET, return_value=make_response(204)):
            assert api.get_currently_playing("token") is NOTHING_PLAYING

    def test_unauthorized(self, make_response):
        with patch(GET, return_value=make_response(401, {"error": {"status": 401}})):
            with pytest.raises(AuthExpired):
                api.get_currently_playing("expired")

    @pytest.mark.parametrize("status", [403, 429, 500, 503])
    def test_other_statuses_are_fetch_errors(self, make_response, status):
        with patch(GET, return_value=make_response(status, {"error": {}})):
            with pytest.raises(FetchError) as exc_info:
                api.get_currently_playing("token")
        assert exc_info.value.status == status

    def test_invalid_json(self, make_response):
        with patch(GET, return_value=make_response(200, text="not json")):
            with pytest.raises(ParseError):
                api.get_currently_playing("token")

    def test_network_failure(self):
        with patch(GET, side_effect=requests.Timeout("slow")):
            with pytest.raises(TransportError):
                api.get_currently_playing("token")

    def test_custom_api_base(self, make_response):
        with patch(GET, return_value=make_response(204)) as mock_get:
            api.get_currently_playing("token", api_base="http://mock")
        assert mock_get.call_args.args[0] == "http://mock/me/player/currently-playing"


class TestParsePlayback:
    """Tests for turning payloads into observations."""

    def test_fields(self, playback_payload):
        observation = api.parse_playback(playback_payload(progress_ms=1234, is_playing=False))

        assert observation == PlaybackObservation(
            track_id="track-1",
            track_name="Song One",
            artist_names=("Artist A", "Artist B"),
            album_art_url="https://img.example/large.jpg",
            duration_ms=200000,
            progress_ms=1234,
            is_playing=False,
        )
        assert observation.artist_line == "Artist A, Artist B"

    def test_no_item_is_nothing_playing(self):
        assert api.parse_playback({"is_playing": True, "item": None}) is NOTHING_PLAYING

    def test_no_images(self, playback_payload):
        payload = playback_payload()
        payload["item"]["album"]["images"] = []
        assert api.parse_playback(payload).album_art_url == ""

    def test_local_file_uses_uri(self, playback_payload):
        payload = playback_payload()
        payload["item"]["id"] = None
        payload["item"]["uri"] = "spotify:local:artist:album:song:200"
        assert api.parse_playback(payload).track_id == "spotify:local:artist:album:song:200"

    def test_progress_clamped_to_duration(self, playback_payload):
        observation = api.parse_playback(playback_payload(progress_ms=250000, duration_ms=200000))
        assert observation.progress_ms == 200000

    def test_missing_progress_is_zero(self, playback_payload):
        payload = playback_payload()
        payload["progress_ms"] = None
        assert api.parse_playback(payload).progress_ms == 0

    def test_missing_duration(self, playback_payload):
        payload = playback_payload()
        del payload["item"]["duration_ms"]
        with pytest.raises(ParseError):
            api.parse_playback(payload)

    def test_missing_identity(self, playback_payload):
        payload = playback_payload()
        payload["item"]["id"] = None
        payload["item"]["uri"] = None
        with pytest.raises(ParseError):
            api.parse_playback(payload)

    def test_wrong_types(self, playback_payload):
        payload = playback_payload()
        payload["is_playing"] = "yes"
        with pytest.raises(ParseError):
            api.parse_playback(payload)

        payload = playback_payload()
        payload["progress_ms"] = "10"
        with pytest.raises(ParseError):
            api.parse_playback(payload)

    def test_not_an_object(self):
        with pytest.raises(ParseError):
            api.parse_playback(["item"])


class TestAudioFeatures:
    """Tests for fetching and validating audio features."""

    def test_complete_record(self, make_response, features_payload):
        with patch(GET, return_value=make_response(200, features_payload())) as mock_get:
            record = api.get_audio_features("token", "track-1")

        assert mock_get.call_args.args[0] == "https://api.spotify.com/v1/audio-features/track-1"
        assert record.track_id == "track-1"
        assert record.tempo_bpm == 120.5
        assert record.energy == 0.8
        assert record.liveness == 0.2

    def test_integer_values_accepted(self, features_payload):
        record = api.parse_audio_features("track-1", features_payload(tempo=128, energy=1))
        assert record.tempo_bpm == 128.0
        assert record.energy == 1.0

    def test_missing_field_makes_record_unavailable(self, make_response, features_payload):
        payload = features_payload()
        del payload["valence"]
        with patch(GET, return_value=make_response(200, payload)):
            with pytest.raises(FeatureUnavailable) as exc_info:
                api.get_audio_features("token", "track-1")
        assert exc_info.value.track_id == "track-1"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"tempo": 0},
            {"tempo": -5.0},
            {"energy": 1.5},
            {"danceability": -0.1},
            {"liveness": "0.3"},
            {"acousticness": True},
            {"valence": float("nan")},
        ],
    )
    def test_invalid_values(self, features_payload, overrides):
        with pytest.raises(FeatureUnavailable):
            api.parse_audio_features("track-1", features_payload(**overrides))

    def test_unauthorized(self, make_response):
        with patch(GET, return_value=make_response(401, {"error": {}})):
            with pytest.raises(AuthExpired):
                api.get_audio_features("token", "track-1")

    def test_not_found(self, make_response):
        with patch(GET, return_value=make_response(404, {"error": {}})):
            with pytest.raises(FeatureUnavailable, match="HTTP 404"):
                api.get_audio_features("token", "track-1")

    def test_invalid_json(self, make_response):
        with patch(GET, return_value=make_response(200, text="")):
            with pytest.raises(FeatureUnavailable):
                api.get_audio_features("token", "track-1")
