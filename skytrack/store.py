"""
Flight store - current flight set and the views derived from it.

Owns the latest flight list, the selected country, the current error and
the loading flag, and pushes every change through relays so the
presentation layer can subscribe. Derived views:

- filtered_flights: airborne flights, narrowed to the selected country
- available_countries: distinct non-empty origin countries, sorted

Fetch outcomes are fed in by the refresh scheduler. Offline failures fall
back to the cached snapshot when one exists.
"""

import logging
import threading
import time
from typing import List, Optional, Sequence

from skytrack.cache import CACHE_TIMESTAMP_KEY, CACHED_FLIGHTS_KEY, PersistentCache
from skytrack.ingestion.errors import FetchError, OfflineError
from skytrack.ingestion.flight_record import FlightRecord, Snapshot
from skytrack.observable import EventRelay, StateRelay

logger = logging.getLogger(__name__)


def filter_flights(
    flights: Sequence[FlightRecord],
    country: Optional[str] = None,
) -> List[FlightRecord]:
    """Drop grounded flights, then keep only ``country`` if one is given. Order is preserved."""
    airborne = [f for f in flights if not f.on_ground]
    if country is not None:
        airborne = [f for f in airborne if f.origin_country == country]
    return airborne


def distinct_countries(flights: Sequence[FlightRecord]) -> List[str]:
    """Sorted distinct origin countries, including grounded flights, excluding ''."""
    return sorted({f.origin_country for f in flights if f.origin_country})


class FlightStore:
    """
    State holder for the flight view.

    All mutations go through the store lock so derived relays always
    reflect the same flights/country pair.
    """

    def __init__(
        self,
        cache: PersistentCache,
        cache_max_age_seconds: Optional[float] = None,
    ):
        self.cache = cache
        self.cache_max_age_seconds = cache_max_age_seconds
        self._lock = threading.RLock()

        self.flights: StateRelay[List[FlightRecord]] = StateRelay([])
        self.filtered_flights: StateRelay[List[FlightRecord]] = StateRelay([])
        self.available_countries: StateRelay[List[str]] = StateRelay([])
        self.selected_country: StateRelay[Optional[str]] = StateRelay(None)
        self.error: StateRelay[Optional[str]] = StateRelay(None)
        self.is_loading: StateRelay[bool] = StateRelay(False)

        # One-shot error notifications (e.g. to open an alert)
        self.error_events: EventRelay[str] = EventRelay()

    # ------------------------------------------------------------------
    # Fetch outcomes
    # ------------------------------------------------------------------

    def on_fetch_started(self) -> None:
        with self._lock:
            self.is_loading.accept(True)

    def on_fetch_succeeded(self, snapshot: Snapshot) -> None:
        """Replace the flight set with a fresh snapshot and persist it."""
        records = list(snapshot.records)
        with self._lock:
            self._set_flights(records)
            self._persist(records, snapshot.time)
            if self.error.value is not None:
                self.error.accept(None)
            self.is_loading.accept(False)

        logger.debug(f'Store updated with {len(records)} flights')

    def on_fetch_failed(self, err: FetchError) -> None:
        """
        Surface a failed fetch.

        Offline with a usable cached snapshot is not an error: the cached
        flights are shown instead. Every other case sets the error message.
        """
        with self._lock:
            cached = self._load_cached_flights() if isinstance(err, OfflineError) else None

            if cached is not None:
                logger.info(f'Offline, showing {len(cached)} cached flights')
                self._set_flights(cached)
            else:
                logger.warning(f'Fetch failed: {err.message}')
                self.error.accept(err.message)
                self.error_events.accept(err.message)

            self.is_loading.accept(False)

    def on_fetch_cancelled(self) -> None:
        """The watch session ended; any in-flight result will be discarded."""
        with self._lock:
            if self.is_loading.value:
                self.is_loading.accept(False)

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    def set_selected_country(self, country: Optional[str]) -> None:
        with self._lock:
            self.selected_country.accept(country)
            self.filtered_flights.accept(
                filter_flights(self.flights.value, country)
            )

    def acknowledge_error(self) -> None:
        """Clear the current error (e.g. after the user dismissed the alert)."""
        with self._lock:
            if self.error.value is not None:
                self.error.accept(None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_flights(self, records: List[FlightRecord]) -> None:
        self.flights.accept(records)
        self.available_countries.accept(distinct_countries(records))
        self.filtered_flights.accept(
            filter_flights(records, self.selected_country.value)
        )

    def _persist(self, records: List[FlightRecord], snapshot_time: int) -> None:
        """
        Write the flight list and its timestamp.

        The old timestamp is dropped first and the new one is written only
        after the flights commit, so a partial write never pairs a list
        with another snapshot's timestamp.
        """
        self.cache.remove(CACHE_TIMESTAMP_KEY)
        if self.cache.put(CACHED_FLIGHTS_KEY, [r.to_dict() for r in records]):
            self.cache.put(CACHE_TIMESTAMP_KEY, snapshot_time)

    def _load_cached_flights(self) -> Optional[List[FlightRecord]]:
        """Read the cached flight list, honoring the optional max age."""
        raw = self.cache.get(CACHED_FLIGHTS_KEY)
        if not isinstance(raw, list):
            return None

        if self.cache_max_age_seconds is not None:
            cached_at = self.cache.get(CACHE_TIMESTAMP_KEY)
            if not isinstance(cached_at, (int, float)) or isinstance(cached_at, bool):
                return None
            age = time.time() - cached_at
            if age > self.cache_max_age_seconds:
                logger.info(f'Cached snapshot too old ({age:.0f}s), ignoring')
                return None

        return [FlightRecord.from_dict(item) for item in raw]

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                'flights': len(self.flights.value),
                'visible': len(self.filtered_flights.value),
                'countries': len(self.available_countries.value),
                'selected_country': self.selected_country.value,
                'error': self.error.value,
                'is_loading': self.is_loading.value,
            }
