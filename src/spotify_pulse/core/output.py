"""
Unified output system using Loguru.
Routes user-facing messages to the Rich console and everything to the log file.
"""

import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

from .config import get_data_dir

_console: Optional[Console] = None

# Quiet mode is enabled while the live display owns the terminal
_quiet = False
_quiet_lock = threading.Lock()

_LEVEL_STYLES = {
    "debug": "cyan",
    "info": "white",
    "warning": "yellow",
    "error": "red",
}


def get_log_file_path() -> Path:
    """Get the path to the log file."""
    return get_data_dir() / "spotify-pulse.log"


def get_console() -> Console:
    """Get or create the global Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def setup_loguru(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink and optional stderr sink.

    Args:
        log_file: Path to log file (default: ~/.local/share/spotify-pulse/spotify-pulse.log)
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Whether to also write logs to stderr
    """
    log_file = log_file if log_file else get_log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level.upper(), format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_quiet(quiet: bool) -> None:
    """Suppress console printing from log() (file logging continues)."""
    global _quiet
    with _quiet_lock:
        _quiet = quiet


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND prints to the console.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _quiet_lock:
        if _quiet:
            return

    get_console().print(message, style=_LEVEL_STYLES.get(level, "white"), markup=False)
