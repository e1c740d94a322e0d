"""Spotify Pulse - live now-playing view with audio features for Spotify."""

__version__ = "0.1.0"
