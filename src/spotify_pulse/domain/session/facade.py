"""
Session facade - one subscription for the presentation layer.

Owns the credential store, token authority, poller, feature cache and
progress clock for a single logged-in user, and runs them on background
threads:

- poll worker: requests playback every poll interval, posts PollCompleted
- ticker: posts Tick every tick interval while the track is playing
- feature executor: fetches audio features, posts FeaturesFetched
- coordinator: the only thread that mutates playback state; consumes the
  queue and emits snapshots to subscribers

Every authenticated call goes through call_with_reauth(): one refresh and
one retry on 401, then ReauthenticationRequired.
"""

import queue
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

from loguru import logger

from ...core.config import Config
from ..auth.authority import TokenAuthority
from ..auth.credentials import Credentials, CredentialStore
from ..auth.exceptions import AuthError, ReauthenticationRequired
from ..playback import api
from ..playback.exceptions import AuthExpired, PlaybackError
from ..playback.features import FeatureCache
from ..playback.interpolator import ProgressInterpolator
from ..playback.models import Observation, Snapshot
from ..playback.poller import PlaybackPoller, PollerState
from .events import SHUTDOWN, FeaturesFetched, PollCompleted, Tick

T = TypeVar("T")

Subscriber = Callable[[Snapshot], None]


class SessionFacade:
    """Single-user playback session with transparent token refresh."""

    def __init__(
        self,
        authority: TokenAuthority,
        store: Optional[CredentialStore] = None,
        poll_interval_ms: int = 5000,
        tick_interval_ms: int = 100,
        request_timeout: float = 30.0,
        feature_workers: int = 2,
        api_base: str = api.API_BASE,
        executor: Optional[Executor] = None,
    ):
        """
        Args:
            authority: Token endpoint client used for login and refresh
            store: Credential store (a fresh empty one by default)
            poll_interval_ms: Period of the playback poll
            tick_interval_ms: Period of the progress clock while playing
            request_timeout: Timeout for every Spotify request (seconds)
            feature_workers: Threads for audio-feature lookups
            api_base: Spotify API base URL
            executor: Executor for feature fetches; when given, the caller
                owns its lifecycle
        """
        self.authority = authority
        self.store = store or CredentialStore()
        self.poll_interval_ms = poll_interval_ms
        self.request_timeout = request_timeout
        self.feature_workers = feature_workers
        self.api_base = api_base

        self.feature_cache = FeatureCache()
        self.interpolator = ProgressInterpolator(tick_interval_ms)
        self.poller = PlaybackPoller(
            fetch_playback=self._fetch_playback,
            feature_cache=self.feature_cache,
            interpolator=self.interpolator,
            request_features=self._request_features,
        )

        self._external_executor = executor
        self._executor: Optional[Executor] = executor

        self._subscribers: List[Subscriber] = []
        self._subscribers_lock = threading.Lock()
        self._snapshot: Snapshot = self.poller.snapshot()

        # Token refresh is serialized so concurrent 401s share one refresh
        self._refresh_lock = threading.Lock()
        self._dead_refresh_token: Optional[str] = None

        self._lifecycle_lock = threading.Lock()
        self._running = False
        self._generation = 0  # Bumped on start/stop; stale producers are ignored
        self._events: queue.Queue = queue.Queue()
        self._stop_event = threading.Event()
        self._playing = threading.Event()
        self._threads: List[threading.Thread] = []

    @classmethod
    def from_config(cls, config: Config) -> "SessionFacade":
        """Build a session from loaded configuration."""
        config.session.validate()
        authority = TokenAuthority(
            client_id=config.spotify.client_id,
            client_secret=config.spotify.client_secret,
            redirect_uri=config.spotify.redirect_uri,
            timeout=config.session.request_timeout,
        )
        return cls(
            authority,
            poll_interval_ms=config.session.poll_interval_ms,
            tick_interval_ms=config.session.tick_interval_ms,
            request_timeout=config.session.request_timeout,
            feature_workers=config.session.feature_workers,
        )

    # -- Authentication ---------------------------------------------------

    def login(self, code: str) -> Credentials:
        """Exchange an authorization code and store the resulting credentials."""
        credentials = self.authority.exchange_code(code)
        self._store_credentials(credentials)
        return credentials

    def resume(self, refresh_token: str) -> Credentials:
        """Start from a refresh token without browser interaction."""
        credentials = self.authority.refresh(refresh_token)
        self._store_credentials(credentials)
        return credentials

    def logout(self) -> None:
        """Stop the session and forget credentials and playback state."""
        self.stop()
        self.store.clear()
        self.poller.reset()
        self._emit(self.poller.snapshot())
        logger.info("Logged out of Spotify")

    def _store_credentials(self, credentials: Credentials) -> None:
        with self._refresh_lock:
            self.store.set(credentials)
            self._dead_refresh_token = None

    def call_with_reauth(self, call: Callable[[str], T]) -> T:
        """Run an authenticated call, refreshing once on AuthExpired.

        Args:
            call: Takes an access token, may raise AuthExpired

        Returns:
            Whatever call returns

        Raises:
            ReauthenticationRequired: If not logged in, the refresh fails, or
                the retried call is rejected again
            TransportError: If the token endpoint cannot be reached
        """
        credentials = self.store.get()
        if credentials is None:
            raise ReauthenticationRequired("Not logged in to Spotify")

        try:
            return call(credentials.access_token)
        except AuthExpired:
            logger.info("Spotify access token rejected, refreshing")

        access_token = self._refresh(stale_token=credentials.access_token)

        try:
            return call(access_token)
        except AuthExpired as e:
            logger.warning("Spotify rejected the refreshed access token")
            raise ReauthenticationRequired() from e

    def _refresh(self, stale_token: str) -> str:
        """Refresh the access token unless another call already has."""
        with self._refresh_lock:
            current = self.store.get()
            if current is None:
                raise ReauthenticationRequired("Not logged in to Spotify")

            if current.access_token != stale_token:
                logger.debug("Access token already refreshed by a concurrent call")
                return current.access_token

            if current.refresh_token and current.refresh_token == self._dead_refresh_token:
                raise ReauthenticationRequired("Refresh token was already rejected")

            try:
                fresh = self.authority.refresh(current.refresh_token)
            except AuthError as e:
                self._dead_refresh_token = current.refresh_token
                logger.warning(f"Spotify token refresh failed: {e}")
                raise ReauthenticationRequired() from e

            self.store.set(fresh)
            return fresh.access_token

    # -- Remote calls -------------------------------------------------------

    def _fetch_playback(self) -> Observation:
        return self.call_with_reauth(
            lambda token: api.get_currently_playing(
                token, timeout=self.request_timeout, api_base=self.api_base
            )
        )

    def _ensure_executor(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.feature_workers, thread_name_prefix="pulse-features"
            )

    def _request_features(self, track_id: str, request_seq: int) -> None:
        with self._lifecycle_lock:
            executor = self._executor
            generation = self._generation
        if executor is None:
            logger.debug(f"Session stopped, not fetching audio features for {track_id}")
            return
        try:
            executor.submit(self._fetch_features, track_id, request_seq, generation)
        except RuntimeError:
            logger.debug(f"Feature executor shut down, not fetching audio features for {track_id}")

    def _fetch_features(self, track_id: str, request_seq: int, generation: int) -> None:
        try:
            record = self.call_with_reauth(
                lambda token: api.get_audio_features(
                    token, track_id, timeout=self.request_timeout, api_base=self.api_base
                )
            )
        except (PlaybackError, AuthError) as e:
            logger.info(f"Audio features unavailable for {track_id}: {e}")
            record = None
        self._post(FeaturesFetched(track_id, request_seq, record), generation)

    # -- Subscribers --------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        """The most recently emitted snapshot."""
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a snapshot callback; returns a function that unsubscribes.

        Callbacks run on the coordinator thread and should return quickly.
        """
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber failed")

    # -- Event handling -----------------------------------------------------

    def _post(self, event: object, generation: int) -> None:
        """Queue an event unless its producer belongs to a torn-down session."""
        with self._lifecycle_lock:
            if generation != self._generation:
                logger.debug(f"Dropping {type(event).__name__} from a stopped session")
                return
            self._events.put(event)

    def _handle(self, event: object) -> None:
        if isinstance(event, PollCompleted):
            snapshot = self.poller.apply(event.result)
            self._sync_ticker()
            self._emit(snapshot)
            if snapshot.requires_login:
                self._terminate()
        elif isinstance(event, Tick):
            snapshot = self.poller.tick()
            if snapshot is not None:
                self._emit(snapshot)
        elif isinstance(event, FeaturesFetched):
            snapshot = self.poller.apply_features(event.track_id, event.request_seq, event.record)
            if snapshot is not None:
                self._emit(snapshot)

    def _sync_ticker(self) -> None:
        if self.interpolator.is_running:
            self._playing.set()
        else:
            self._playing.clear()

    def _terminate(self) -> None:
        """End the session after an unrecoverable auth failure."""
        logger.warning("Spotify session ended, login required")
        self.store.clear()
        self.stop()

    def process_pending(self) -> None:
        """Handle queued events on the caller's thread (session not started)."""
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return
            if event is not SHUTDOWN:
                self._handle(event)

    def poll_once(self) -> Snapshot:
        """Poll and apply synchronously on the caller's thread.

        Only valid while the session is not started. Feature results that
        finish later are applied by the next poll_once() or process_pending().
        """
        if self._running:
            raise RuntimeError("poll_once() cannot be used while the session is running")
        self._ensure_executor()
        self._handle(PollCompleted(self.poller.fetch()))
        self.process_pending()
        return self._snapshot

    # -- Lifecycle ----------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start polling, ticking and the coordinator.

        Raises:
            ReauthenticationRequired: If no credentials are stored
        """
        with self._lifecycle_lock:
            if self._running:
                return
            if self.store.get() is None:
                raise ReauthenticationRequired("Log in before starting the session")

            self._running = True
            self._generation += 1
            generation = self._generation
            self._stop_event = threading.Event()
            self._events = queue.Queue()
            self._playing.clear()
            self.poller.reset()
            self._snapshot = self.poller.snapshot()
            self._ensure_executor()

            self._threads = [
                threading.Thread(
                    target=self._run_coordinator,
                    args=(self._events, generation),
                    name="pulse-coordinator",
                    daemon=True,
                ),
                threading.Thread(
                    target=self._run_poller,
                    args=(generation, self._stop_event),
                    name="pulse-poller",
                    daemon=True,
                ),
                threading.Thread(
                    target=self._run_ticker,
                    args=(generation, self._stop_event),
                    name="pulse-ticker",
                    daemon=True,
                ),
            ]
            for thread in self._threads:
                thread.start()

        logger.info(
            f"Session started (poll={self.poll_interval_ms}ms, "
            f"tick={self.interpolator.tick_interval_ms}ms)"
        )

    def stop(self) -> None:
        """Cancel timers and in-flight result handlers. Safe to call twice."""
        with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            self._stop_event.set()
            self._events.put(SHUTDOWN)
            self._events = queue.Queue()
            threads, self._threads = self._threads, []
            executor = None
            if self._external_executor is None:
                executor, self._executor = self._executor, None

        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join(timeout=2.0)
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

        self._playing.clear()
        self.poller.state = PollerState.IDLE
        logger.info("Session stopped")

    def _run_coordinator(self, events: queue.Queue, generation: int) -> None:
        while True:
            event = events.get()
            if event is SHUTDOWN:
                break
            if generation != self._generation:
                logger.debug(f"Dropping {type(event).__name__} queued before stop")
                continue
            try:
                self._handle(event)
            except Exception:
                logger.exception(f"Failed to handle {type(event).__name__}")

    def _run_poller(self, generation: int, stop_event: threading.Event) -> None:
        interval = self.poll_interval_ms / 1000
        while not stop_event.is_set():
            try:
                result = self.poller.fetch()
            except Exception:
                logger.exception("Unexpected error during playback poll")
                result = None
            if result is not None:
                self._post(PollCompleted(result), generation)
            if stop_event.wait(interval):
                break

    def _run_ticker(self, generation: int, stop_event: threading.Event) -> None:
        interval = self.interpolator.tick_interval_ms / 1000
        while not stop_event.is_set():
            if not self._playing.wait(timeout=interval):
                continue
            if stop_event.wait(interval):
                break
            self._post(Tick(), generation)
