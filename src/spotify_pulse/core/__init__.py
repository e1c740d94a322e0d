"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging and console output (Loguru, Rich)
"""

from .config import (
    Config,
    LoggingConfig,
    SessionConfig,
    SpotifyConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .output import get_console, get_log_file_path, log, set_quiet, setup_loguru

__all__ = [
    "Config",
    "LoggingConfig",
    "SessionConfig",
    "SpotifyConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    "get_console",
    "get_log_file_path",
    "log",
    "set_quiet",
    "setup_loguru",
]
