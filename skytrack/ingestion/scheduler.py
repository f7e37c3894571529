"""
Refresh scheduler - owns the polling lifecycle for a watched region.

States:
    IDLE       no region watched, no timer
    WATCHING   one worker thread polls the region every poll_interval
    SUSPENDED  worker keeps running but ticks are dropped (e.g. while an
               error alert is open)

Each start_watching() opens a new watch session with its own worker
thread and a higher generation number. The first fetch of a session
fires immediately. A fetch result is only applied to the store if its
session is still the current one, so a slow response for a region the
user already panned away from can never overwrite newer data.
"""

import logging
import threading
import time
from enum import Enum
from typing import List, Optional

from skytrack.config import config
from skytrack.ingestion.errors import FetchError, UnknownFetchError
from skytrack.ingestion.opensky_client import BoundingBox, OpenSkyClient
from skytrack.observable import Subscription
from skytrack.store import FlightStore

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = 'idle'
    WATCHING = 'watching'
    SUSPENDED = 'suspended'


class _WatchSession:
    """One start_watching() .. stop()/start_watching() period."""

    def __init__(self, generation: int, region: BoundingBox):
        self.generation = generation
        self.region = region
        self.wake = threading.Event()
        self.cancelled = threading.Event()
        self.thread: Optional[threading.Thread] = None

    def cancel(self) -> None:
        self.cancelled.set()
        self.wake.set()


class RefreshScheduler:
    """
    Drives periodic fetches for the active region and feeds the store.

    Region changes are not debounced: the old session is cancelled and
    the new one fetches right away. In-flight requests of a cancelled
    session are left to finish and their results are discarded.
    """

    def __init__(
        self,
        store: FlightStore,
        client: Optional[OpenSkyClient] = None,
        poll_interval: Optional[float] = None,
        suspend_on_error: Optional[bool] = None,
        fetch_on_resume: Optional[bool] = None,
        refresh_on_country_change: Optional[bool] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Flight store receiving fetch outcomes
            client: OpenSky API client (created from config if None)
            poll_interval: Seconds between fetches within a session
            suspend_on_error: Suspend polling whenever the store reports an error
            fetch_on_resume: Fetch immediately when resuming from suspension
            refresh_on_country_change: Re-fetch the current region when the
                selected country changes
        """
        self.store = store
        self.client = client or OpenSkyClient.from_config()
        self.poll_interval = (
            config.refresh.poll_interval if poll_interval is None else poll_interval
        )
        self.suspend_on_error = (
            config.refresh.suspend_on_error if suspend_on_error is None else suspend_on_error
        )
        self.fetch_on_resume = (
            config.refresh.fetch_on_resume if fetch_on_resume is None else fetch_on_resume
        )
        self.refresh_on_country_change = (
            config.refresh.refresh_on_country_change
            if refresh_on_country_change is None else refresh_on_country_change
        )

        self._lock = threading.RLock()
        self._session: Optional[_WatchSession] = None
        self._generation = 0
        self._suspended = False

        # Statistics
        self._fetch_count = 0
        self._error_count = 0
        self._discarded_count = 0
        self._dropped_ticks = 0
        self._last_fetch_time: float = 0

        self._subscriptions: List[Subscription] = []
        if self.suspend_on_error:
            self._subscriptions.append(
                store.error_events.subscribe(self._on_error_event)
            )
        if self.refresh_on_country_change:
            # selected_country replays its current value on subscribe; skip it
            self._skip_country_replay = True
            self._subscriptions.append(
                store.selected_country.subscribe(self._on_country_changed)
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_watching(self, region: BoundingBox) -> None:
        """
        Watch ``region``, replacing any current session.

        Fetches immediately, then every poll_interval seconds. Suspension
        is kept across region changes.
        """
        with self._lock:
            if self._session is not None:
                # the old session's in-flight result will be discarded
                self._session.cancel()
                self.store.on_fetch_cancelled()

            self._generation += 1
            session = _WatchSession(self._generation, region)
            self._session = session

            session.thread = threading.Thread(
                target=self._run,
                args=(session,),
                name=f'refresh-{session.generation}',
                daemon=True,
            )
            session.thread.start()

        logger.info(
            f'Watching region {region.to_params()} '
            f'(generation={session.generation}, interval={self.poll_interval}s)'
        )

    def stop(self) -> None:
        """Cancel the current session and return to IDLE."""
        with self._lock:
            session = self._session
            if session is None:
                return
            session.cancel()
            self._session = None
            self._suspended = False
            self.store.on_fetch_cancelled()

        logger.info(f'Stopped watching (generation={session.generation})')

    def close(self, timeout: float = 5.0) -> None:
        """Stop, wait briefly for the worker, and drop store subscriptions."""
        session = self._session
        self.stop()
        if session and session.thread and session.thread is not threading.current_thread():
            session.thread.join(timeout=timeout)

        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def __enter__(self) -> 'RefreshScheduler':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def suspend(self) -> None:
        """Drop ticks until resume() is called. No-op when idle."""
        if self._session is None or self._suspended:
            return
        self._suspended = True
        logger.info('Polling suspended')

    def resume(self) -> None:
        """Re-activate ticks; optionally fetch right away."""
        if not self._suspended:
            return
        self._suspended = False
        logger.info('Polling resumed')
        if self.fetch_on_resume:
            self.refresh()

    def refresh(self) -> None:
        """Fetch the current region now instead of waiting for the next tick."""
        session = self._session
        if session is not None:
            session.wake.set()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self, session: _WatchSession) -> None:
        self._tick(session)
        while True:
            session.wake.wait(self.poll_interval)
            session.wake.clear()
            if session.cancelled.is_set():
                break
            self._tick(session)
        logger.debug(f'Worker for generation {session.generation} exited')

    def _is_current(self, session: _WatchSession) -> bool:
        return self._session is session and not session.cancelled.is_set()

    def _tick(self, session: _WatchSession) -> None:
        """Execute one fetch cycle for ``session``."""
        if self._suspended:
            self._dropped_ticks += 1
            logger.debug('Tick dropped while suspended')
            return

        with self._lock:
            if not self._is_current(session):
                return
            self.store.on_fetch_started()

        snapshot = None
        error: Optional[FetchError] = None
        try:
            snapshot = self.client.get_snapshot(session.region)
        except FetchError as e:
            error = e
        except Exception as e:
            logger.error(f'Unexpected fetch error: {e}')
            error = UnknownFetchError(detail=str(e))

        with self._lock:
            if not self._is_current(session):
                self._discarded_count += 1
                logger.debug(
                    f'Discarding result for stale generation {session.generation}'
                )
                return

            self._fetch_count += 1
            self._last_fetch_time = time.time()
            if error is None:
                self.store.on_fetch_succeeded(snapshot)
            else:
                self._error_count += 1
                self.store.on_fetch_failed(error)

    # ------------------------------------------------------------------
    # Store callbacks
    # ------------------------------------------------------------------

    def _on_error_event(self, message: str) -> None:
        self.suspend()

    def _on_country_changed(self, country: Optional[str]) -> None:
        if self._skip_country_replay:
            self._skip_country_replay = False
            return
        logger.debug(f'Country filter changed to {country!r}, refreshing')
        self.refresh()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        if self._session is None:
            return SchedulerState.IDLE
        if self._suspended:
            return SchedulerState.SUSPENDED
        return SchedulerState.WATCHING

    @property
    def active_region(self) -> Optional[BoundingBox]:
        session = self._session
        return session.region if session else None

    @property
    def stats(self) -> dict:
        """Get scheduler statistics."""
        return {
            'state': self.state.value,
            'generation': self._generation,
            'fetch_count': self._fetch_count,
            'error_count': self._error_count,
            'discarded_count': self._discarded_count,
            'dropped_ticks': self._dropped_ticks,
            'last_fetch_time': self._last_fetch_time,
            'poll_interval': self.poll_interval,
        }
