"""Tests for configuration loading."""

import pytest

from spotify_pulse.core import config as config_module
from spotify_pulse.core.config import Config, SessionConfig, load_config


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point config lookup at an empty temporary directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOTIFY_REDIRECT_URI"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "config" / "spotify-pulse"


def _write_config(config_home, text):
    config_home.mkdir(parents=True, exist_ok=True)
    (config_home / "config.toml").write_text(text, encoding="utf-8")


class TestSessionConfig:
    def test_defaults_are_valid(self):
        SessionConfig().validate()

    @pytest.mark.parametrize(
        "field_name", ["poll_interval_ms", "tick_interval_ms", "request_timeout", "feature_workers"]
    )
    def test_rejects_non_positive(self, field_name):
        session = SessionConfig(**{field_name: 0})
        with pytest.raises(ValueError, match=field_name):
            session.validate()


class TestLoadConfig:
    """Tests for load_config()."""

    def test_creates_default_when_missing(self, config_home, capsys):
        config = load_config()

        assert config == Config()
        assert (config_home / "config.toml").exists()
        assert "Created default configuration" in capsys.readouterr().out

    def test_default_file_round_trips(self, config_home):
        load_config()
        assert load_config() == Config()

    def test_reads_values(self, config_home):
        _write_config(
            config_home,
            """
[spotify]
client_id = "abc"
client_secret = "shh"
show_dialog = false

[session]
poll_interval_ms = 2000
tick_interval_ms = 250

[logging]
level = "DEBUG"
""",
        )

        config = load_config()

        assert config.spotify.client_id == "abc"
        assert config.spotify.client_secret == "shh"
        assert config.spotify.show_dialog is False
        assert config.spotify.redirect_uri == "http://localhost:8080/callback"
        assert config.session.poll_interval_ms == 2000
        assert config.session.tick_interval_ms == 250
        assert config.session.request_timeout == 30.0
        assert config.logging.level == "DEBUG"

    def test_local_config_takes_precedence(self, config_home, tmp_path):
        _write_config(config_home, '[spotify]\nclient_id = "from-home"\n')
        (tmp_path / "config.toml").write_text('[spotify]\nclient_id = "local"\n', encoding="utf-8")

        assert config_module.get_config_path() == tmp_path / "config.toml"
        assert load_config().spotify.client_id == "local"

    def test_invalid_session_falls_back_to_defaults(self, config_home, capsys):
        _write_config(config_home, "[session]\npoll_interval_ms = -1\n")

        config = load_config()

        assert config == Config()
        assert "Using default configuration" in capsys.readouterr().out

    def test_malformed_toml_falls_back_to_defaults(self, config_home):
        _write_config(config_home, "[spotify\nclient_id = ")
        assert load_config() == Config()

    def test_environment_overrides(self, config_home, monkeypatch):
        _write_config(config_home, '[spotify]\nclient_id = "from-file"\n')
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "from-env")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:9999/cb")

        config = load_config()

        assert config.spotify.client_id == "from-env"
        assert config.spotify.client_secret == "env-secret"
        assert config.spotify.redirect_uri == "http://127.0.0.1:9999/cb"

    def test_dotenv_file(self, config_home, monkeypatch):
        # Register the variable with monkeypatch so the value dotenv sets is undone
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "placeholder")
        monkeypatch.delenv("SPOTIFY_CLIENT_ID")
        config_home.mkdir(parents=True, exist_ok=True)
        (config_home / ".env").write_text("SPOTIFY_CLIENT_ID=dotenv-id\n", encoding="utf-8")

        config = load_config()

        assert config.spotify.client_id == "dotenv-id"


class TestDirectories:
    def test_ensure_directories(self, config_home, tmp_path):
        config_module.ensure_directories()
        assert config_home.is_dir()
        assert (tmp_path / "data" / "spotify-pulse").is_dir()
