"""Domain layer - auth, playback tracking and the session that ties them together."""
