"""
OAuth redirect handling.

Parses the callback URL Spotify redirects to, and runs a one-shot local HTTP
listener to catch that redirect when the redirect URI points at localhost.
"""

import base64
import secrets
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse

from loguru import logger

from .exceptions import NoCodeError, StateMismatchError

_SUCCESS_HTML = """
<html><body style="font-family: sans-serif; text-align: center; padding: 50px;">
<h1 style="color: #1DB954;">&#10003; Logged in to Spotify</h1>
<p>You can close this window and return to the terminal.</p>
</body></html>
"""

_FAILURE_HTML = """
<html><body style="font-family: sans-serif; text-align: center; padding: 50px;">
<h1 style="color: #dc3545;">&#10007; Authorization failed</h1>
<p>Error: {error}</p>
</body></html>
"""


def generate_state() -> str:
    """Generate a random CSRF state token."""
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8").rstrip("=")


def parse_callback_url(callback_url: str, expected_state: Optional[str] = None) -> str:
    """Extract the authorization code from a redirect URL.

    Args:
        callback_url: Full URL (or path with query) Spotify redirected to
        expected_state: State we sent; checked when given

    Returns:
        Authorization code

    Raises:
        NoCodeError: If Spotify returned an error or no code
        StateMismatchError: If the returned state differs from expected_state
    """
    params = parse_qs(urlparse(callback_url).query)
    code = params.get("code", [None])[0]
    error = params.get("error", [None])[0]
    state = params.get("state", [None])[0]

    if error:
        raise NoCodeError(f"Authorization error from Spotify: {error}")
    if not code:
        raise NoCodeError()
    if expected_state is not None and state != expected_state:
        logger.error("CSRF state mismatch on Spotify callback")
        raise StateMismatchError("State mismatch - possible CSRF attempt, try again")

    return code


def wait_for_callback(redirect_uri: str, timeout: float = 120.0) -> Optional[str]:
    """Listen on the redirect URI's port for a single callback request.

    Args:
        redirect_uri: Registered redirect URI (e.g. http://localhost:8080/callback)
        timeout: Seconds to wait for the browser redirect

    Returns:
        The callback path with query string, or None on timeout

    Raises:
        OSError: If the local port cannot be bound
    """
    parsed_redirect = urlparse(redirect_uri)
    host = parsed_redirect.hostname or "localhost"
    port = parsed_redirect.port or 8080

    received: dict = {"path": None}

    class CallbackHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            received["path"] = self.path
            params = parse_qs(urlparse(self.path).query)

            self.send_response(200)
            self.send_header("Content-type", "text/html")
            self.end_headers()

            if params.get("code"):
                html = _SUCCESS_HTML
            else:
                html = _FAILURE_HTML.format(error=params.get("error", ["unknown"])[0])
            self.wfile.write(html.encode())

        def log_message(self, format, *args):
            pass  # Suppress server logs

    server = HTTPServer((host, port), CallbackHandler)
    try:
        server_thread = threading.Thread(target=server.handle_request, daemon=True)
        server_thread.start()
        logger.debug(f"Callback listener on {host}:{port}")
        server_thread.join(timeout=timeout)
    finally:
        server.server_close()

    if received["path"] is None:
        logger.warning(f"No authorization callback after {timeout} seconds")
    return received["path"]
