"""
Typed flight records built from OpenSky state vectors.

OpenSky state vector format (array indices used here):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max, space padded)
2: origin_country  - Country of registration
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
8: on_ground       - Boolean

Indices 3, 4, 7 and 9+ (timestamps, altitude, velocity...) are ignored.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from skytrack.ingestion.state_value import NONE, StateValue, ValueKind, decode_states

logger = logging.getLogger(__name__)

ID_INDEX = 0
CALLSIGN_INDEX = 1
ORIGIN_COUNTRY_INDEX = 2
LONGITUDE_INDEX = 5
LATITUDE_INDEX = 6
ON_GROUND_INDEX = 8


def _field(vector: Sequence[Any], index: int) -> StateValue:
    if index >= len(vector):
        return NONE
    return StateValue.decode(vector[index])


@dataclass(frozen=True)
class FlightRecord:
    """
    A single aircraft as shown to the presentation layer.

    Missing or mistyped fields fall back to empty strings, 0.0 and False,
    so a record can always be built from whatever the API sends.
    """
    id: str = ''
    callsign: str = ''
    origin_country: str = ''
    longitude: float = 0.0
    latitude: float = 0.0
    on_ground: bool = False

    @classmethod
    def parse(cls, vector: Optional[Sequence[Any]]) -> 'FlightRecord':
        """
        Build a record from a positional state vector.

        Entries may be raw JSON scalars or decoded StateValues. Never raises.
        """
        if not isinstance(vector, (list, tuple)):
            return cls()

        callsign = _field(vector, CALLSIGN_INDEX).as_str()
        longitude = _field(vector, LONGITUDE_INDEX).as_float()
        latitude = _field(vector, LATITUDE_INDEX).as_float()
        on_ground = _field(vector, ON_GROUND_INDEX).as_bool()

        return cls(
            id=_field(vector, ID_INDEX).as_str() or '',
            callsign=callsign.strip() if callsign else '',
            origin_country=_field(vector, ORIGIN_COUNTRY_INDEX).as_str() or '',
            longitude=longitude if longitude is not None else 0.0,
            latitude=latitude if latitude is not None else 0.0,
            on_ground=on_ground if on_ground is not None else False,
        )

    @classmethod
    def from_dict(cls, data: Any) -> 'FlightRecord':
        """Rebuild a record from its cached JSON form, with the same defaults as parse()."""
        if not isinstance(data, dict):
            return cls()

        def text(key: str) -> str:
            value = StateValue.decode(data.get(key)).as_str()
            return value or ''

        def number(key: str) -> float:
            value = StateValue.decode(data.get(key)).as_float()
            return value if value is not None else 0.0

        on_ground = StateValue.decode(data.get('onGround')).as_bool()

        return cls(
            id=text('id'),
            callsign=text('callsign'),
            origin_country=text('originCountry'),
            longitude=number('longitude'),
            latitude=number('latitude'),
            on_ground=on_ground if on_ground is not None else False,
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for caching and API responses."""
        return {
            'id': self.id,
            'callsign': self.callsign,
            'originCountry': self.origin_country,
            'longitude': self.longitude,
            'latitude': self.latitude,
            'onGround': self.on_ground,
        }


@dataclass(frozen=True)
class Snapshot:
    """One fetched batch of flight records plus its source timestamp."""
    time: int
    records: List[FlightRecord] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Any) -> 'Snapshot':
        """
        Build a snapshot from a decoded ``{time, states}`` body.

        Raises ValueError when ``time`` is missing or not an integer;
        a missing or malformed ``states`` member yields no records.
        """
        if not isinstance(payload, dict):
            raise ValueError('response body is not an object')

        api_time = StateValue.decode(payload.get('time'))
        if api_time.kind is not ValueKind.INT:
            raise ValueError(f'invalid time field: {payload.get("time")!r}')

        rows = decode_states(payload.get('states'))
        records = [FlightRecord.parse(row) for row in rows]

        logger.debug(f'Parsed {len(records)} flight records at t={api_time.value}')

        return cls(time=api_time.value, records=records)
