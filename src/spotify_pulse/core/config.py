"""
Configuration management for Spotify Pulse
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SpotifyConfig:
    """Configuration for the Spotify OAuth application."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8080/callback"
    show_dialog: bool = True


@dataclass
class SessionConfig:
    """Timing and concurrency settings for the playback session."""

    poll_interval_ms: int = 5000
    tick_interval_ms: int = 100
    request_timeout: float = 30.0  # Seconds, applied to every remote call
    feature_workers: int = 2

    def validate(self) -> None:
        """Validate session configuration values.

        Raises:
            ValueError: If any interval, timeout or worker count is not positive
        """
        for name in ("poll_interval_ms", "tick_interval_ms", "request_timeout", "feature_workers"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: ~/.local/share/spotify-pulse/spotify-pulse.log
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "spotify-pulse"
    return Path.home() / ".config" / "spotify-pulse"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/spotify-pulse (or ~/.config/spotify-pulse)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "spotify-pulse"
    return Path.home() / ".local" / "share" / "spotify-pulse"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Spotify Pulse Configuration

[spotify]
# Create an app at https://developer.spotify.com/dashboard
# SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET environment variables override these
client_id = ""
client_secret = ""
redirect_uri = "http://localhost:8080/callback"

# Always show the Spotify consent dialog when logging in
show_dialog = true

[session]
# How often to ask Spotify what is playing (milliseconds)
poll_interval_ms = 5000

# How often the local progress clock advances between polls (milliseconds)
tick_interval_ms = 100

# Timeout for every request to Spotify (seconds)
request_timeout = 30

# Parallel audio-feature lookups
feature_workers = 2

[logging]
# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
level = "INFO"

# Custom log file path (default: ~/.local/share/spotify-pulse/spotify-pulse.log)
# log_file = "/path/to/custom/spotify-pulse.log"

# Also print logs to stderr (for debugging)
console_output = false
"""


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - SPOTIFY_CLIENT_ID
    - SPOTIFY_CLIENT_SECRET
    - SPOTIFY_REDIRECT_URI
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    _apply_env_overrides(config)
    return config


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per key."""
    config = Config()

    if "spotify" in toml_data:
        spotify_data = toml_data["spotify"]
        config.spotify = SpotifyConfig(
            client_id=spotify_data.get("client_id", config.spotify.client_id),
            client_secret=spotify_data.get(
                "client_secret", config.spotify.client_secret
            ),
            redirect_uri=spotify_data.get("redirect_uri", config.spotify.redirect_uri),
            show_dialog=spotify_data.get("show_dialog", config.spotify.show_dialog),
        )

    if "session" in toml_data:
        session_data = toml_data["session"]
        config.session = SessionConfig(
            poll_interval_ms=int(
                session_data.get("poll_interval_ms", config.session.poll_interval_ms)
            ),
            tick_interval_ms=int(
                session_data.get("tick_interval_ms", config.session.tick_interval_ms)
            ),
            request_timeout=float(
                session_data.get("request_timeout", config.session.request_timeout)
            ),
            feature_workers=int(
                session_data.get("feature_workers", config.session.feature_workers)
            ),
        )
        config.session.validate()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level),
            log_file=logging_data.get("log_file"),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    """Override Spotify credentials with environment variables if present."""
    client_id = os.environ.get("SPOTIFY_CLIENT_ID")
    client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET")
    redirect_uri = os.environ.get("SPOTIFY_REDIRECT_URI")

    if client_id:
        config.spotify.client_id = client_id
    if client_secret:
        config.spotify.client_secret = client_secret
    if redirect_uri:
        config.spotify.redirect_uri = redirect_uri


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
