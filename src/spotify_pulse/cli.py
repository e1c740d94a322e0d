"""
Spotify Pulse CLI - Entry point

Logs in to Spotify and shows a live view of the current track, its progress
and its audio features.
"""

import argparse
import os
import sys
import time
import webbrowser
from pathlib import Path
from typing import Optional

from loguru import logger

from spotify_pulse.core.config import Config, ensure_directories, load_config
from spotify_pulse.core.output import get_console, log, set_quiet, setup_loguru
from spotify_pulse.domain.auth import (
    AuthError,
    NoCodeError,
    generate_state,
    parse_callback_url,
    wait_for_callback,
)
from spotify_pulse.domain.playback.exceptions import TransportError
from spotify_pulse.domain.session import SessionFacade
from spotify_pulse.ui import LiveView

CALLBACK_TIMEOUT = 120  # Seconds to wait for the browser redirect


def _check_credentials(config: Config) -> bool:
    if config.spotify.client_id and config.spotify.client_secret:
        return True

    log("❌ Spotify credentials not configured", level="error")
    log("\nTo get Spotify API credentials:", level="info")
    log("1. Visit: https://developer.spotify.com/dashboard", level="info")
    log("2. Create an application", level="info")
    log(f"3. Add redirect URI: {config.spotify.redirect_uri}", level="info")
    log("4. Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET, or edit config.toml", level="info")
    return False


def authenticate(
    session: SessionFacade,
    config: Config,
    code: Optional[str] = None,
    refresh_token: Optional[str] = None,
) -> None:
    """Obtain credentials for the session.

    Order: explicit code, explicit or environment refresh token, then the
    browser flow with a local callback listener (manual paste as fallback).

    Raises:
        AuthError: If Spotify rejects the login or no code is received
        TransportError: If Spotify cannot be reached
    """
    if code:
        session.login(code)
        return

    refresh_token = refresh_token or os.environ.get("SPOTIFY_REFRESH_TOKEN")
    if refresh_token:
        session.resume(refresh_token)
        return

    state = generate_state()
    auth_url = session.authority.authorize_url(
        state=state, show_dialog=config.spotify.show_dialog
    )

    log("🔐 Starting Spotify authentication...", level="info")
    browser_opened = False
    try:
        browser_opened = webbrowser.open(auth_url)
    except webbrowser.Error as e:
        logger.debug(f"Failed to open browser: {e}")
    if not browser_opened:
        log("Please open this URL in your browser:", level="info")
        log(auth_url, level="info")

    try:
        callback_url = wait_for_callback(config.spotify.redirect_uri, timeout=CALLBACK_TIMEOUT)
    except OSError as e:
        log(f"⚠ Could not start callback server: {e}", level="warning")
        log(f"Open this URL, then paste the URL you are redirected to:\n{auth_url}", level="info")
        try:
            callback_url = input("Paste the callback URL: ").strip()
        except (EOFError, KeyboardInterrupt):
            callback_url = None

    if not callback_url:
        raise NoCodeError("No authorization callback received")

    session.login(parse_callback_url(callback_url, expected_state=state))
    log("✓ Logged in to Spotify", level="info")


def run_login_url(config: Config) -> int:
    """Print the authorization URL."""
    if not _check_credentials(config):
        return 1

    session = SessionFacade.from_config(config)
    print(session.authority.authorize_url(show_dialog=config.spotify.show_dialog))
    return 0


def run_watch(config: Config, args: argparse.Namespace) -> int:
    """Log in and render the live view until interrupted or logged out."""
    if not _check_credentials(config):
        return 1

    session = SessionFacade.from_config(config)
    try:
        authenticate(session, config, code=args.code, refresh_token=args.refresh_token)
    except (AuthError, TransportError) as e:
        log(f"❌ Login failed: {e}", level="error")
        return 1

    with LiveView(console=get_console()) as view:
        set_quiet(True)
        session.subscribe(view)
        try:
            session.start()
            while session.is_running:
                time.sleep(0.25)
        except KeyboardInterrupt:
            pass
        finally:
            session.stop()
            set_quiet(False)

    if session.snapshot.requires_login:
        log("⚠ Spotify session expired. Run 'spotify-pulse watch' to log in again.", level="warning")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spotify-pulse",
        description="Spotify Pulse - live now-playing view with audio features",
    )
    parser.add_argument(
        "--log-level",
        help="Override log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # Also accepted after the subcommand; SUPPRESS keeps the top-level value otherwise
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    subparsers.add_parser(
        "login-url", parents=[common], help="Print the Spotify authorization URL"
    )

    watch_parser = subparsers.add_parser(
        "watch", parents=[common], help="Show what is playing, live"
    )
    auth_group = watch_parser.add_mutually_exclusive_group()
    auth_group.add_argument("--code", help="Authorization code from the Spotify redirect")
    auth_group.add_argument(
        "--refresh-token",
        help="Refresh token to resume a session (default: $SPOTIFY_REFRESH_TOKEN)",
    )
    watch_parser.add_argument(
        "--poll-interval", type=int, metavar="MS", help="Playback poll period in ms"
    )
    watch_parser.add_argument(
        "--tick-interval", type=int, metavar="MS", help="Progress tick period in ms"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the spotify-pulse command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    ensure_directories()
    if args.log_level:
        config.logging.level = args.log_level
    setup_loguru(
        Path(config.logging.log_file).expanduser() if config.logging.log_file else None,
        level=config.logging.level,
        console_output=config.logging.console_output,
    )

    if args.subcommand == "login-url":
        sys.exit(run_login_url(config))

    if args.poll_interval is not None:
        config.session.poll_interval_ms = args.poll_interval
    if args.tick_interval is not None:
        config.session.tick_interval_ms = args.tick_interval
    try:
        config.session.validate()
    except ValueError as e:
        log(f"❌ {e}", level="error")
        sys.exit(1)

    sys.exit(run_watch(config, args))


if __name__ == "__main__":
    main()
