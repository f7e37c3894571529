"""Shared test doubles and builders."""

import threading
import time
from typing import Callable, Dict, List, Optional, Union

from skytrack.ingestion.errors import FetchError
from skytrack.ingestion.flight_record import FlightRecord, Snapshot
from skytrack.ingestion.opensky_client import BoundingBox

REGION_A = BoundingBox(lat_min=30.0, lat_max=50.0, lon_min=-10.0, lon_max=10.0)
REGION_B = BoundingBox(lat_min=40.0, lat_max=42.0, lon_min=28.0, lon_max=30.0)


def state_vector(
    icao24: str = 'abc123',
    callsign: str = 'THY1    ',
    country: str = 'Turkey',
    longitude: float = 28.8,
    latitude: float = 41.0,
    on_ground: bool = False,
) -> list:
    """A full 17-field OpenSky state vector."""
    return [
        icao24, callsign, country, 1700000000, 1700000001,
        longitude, latitude, 10668.0, on_ground, 230.5,
        91.2, 0.0, None, 10800.0, '7000', False, 0,
    ]


def record(
    icao24: str,
    country: str,
    on_ground: bool = False,
    callsign: str = '',
) -> FlightRecord:
    return FlightRecord(
        id=icao24,
        callsign=callsign,
        origin_country=country,
        longitude=1.0,
        latitude=2.0,
        on_ground=on_ground,
    )


def snapshot(*records: FlightRecord, time_: int = 1700000000) -> Snapshot:
    return Snapshot(time=time_, records=list(records))


Outcome = Union[Snapshot, FetchError, Exception]


class FakeClient:
    """
    Stand-in for OpenSkyClient.

    Returns (or raises) a configured outcome per region. A region can be
    gated so its call blocks until release() is called.
    """

    def __init__(self, default: Optional[Outcome] = None):
        self.default = default if default is not None else snapshot()
        self.outcomes: Dict[BoundingBox, Outcome] = {}
        self.gates: Dict[BoundingBox, threading.Event] = {}
        self.calls: List[BoundingBox] = []
        self._lock = threading.Lock()

    def gate(self, region: BoundingBox) -> None:
        self.gates[region] = threading.Event()

    def release(self, region: BoundingBox) -> None:
        self.gates[region].set()

    def calls_for(self, region: BoundingBox) -> int:
        with self._lock:
            return sum(1 for r in self.calls if r == region)

    def get_snapshot(self, region: BoundingBox) -> Snapshot:
        with self._lock:
            self.calls.append(region)
        gate = self.gates.get(region)
        if gate is not None:
            gate.wait(timeout=5)
        outcome = self.outcomes.get(region, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
