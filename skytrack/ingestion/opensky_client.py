"""
OpenSky Network API client.

Handles one round trip to the OpenSky REST API for a bounding box:
- Request construction and validation
- Pre-flight connectivity check (fail fast when offline)
- Request/response logging with a per-request ID
- Classification of failures into the FetchError taxonomy

The client keeps no per-call state, so a caller can drop a result it no
longer cares about without affecting later calls.
"""

import logging
import math
import socket
import uuid
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from skytrack.config import config
from skytrack.ingestion.errors import (
    DecodingError,
    HttpError,
    InvalidRequestError,
    OfflineError,
    UnknownFetchError,
)
from skytrack.ingestion.flight_record import Snapshot
from skytrack.ingestion.network_logger import log_request, log_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """
    Geographic bounding box for API queries.

    OpenSky expects: lamin, lomin, lamax, lomax
    (latitude min, longitude min, latitude max, longitude max)

    Frozen and hashable so the scheduler can compare regions directly.
    """
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    @classmethod
    def from_center_span(
        cls,
        center_lat: float,
        center_lon: float,
        lat_delta: float,
        lon_delta: float,
    ) -> 'BoundingBox':
        """Create bounding box from a map viewport (center point and span)."""
        return cls(
            lat_min=center_lat - lat_delta / 2,
            lat_max=center_lat + lat_delta / 2,
            lon_min=center_lon - lon_delta / 2,
            lon_max=center_lon + lon_delta / 2,
        )

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (self.lat_min, self.lat_max, self.lon_min, self.lon_max)
        )

    def to_params(self) -> dict:
        """Convert to OpenSky API query parameters."""
        return {
            'lamin': self.lat_min,
            'lomin': self.lon_min,
            'lamax': self.lat_max,
            'lomax': self.lon_max,
        }


class ConnectivityProbe:
    """
    Cheap reachability check: open and close a TCP connection to the API host.

    Detecting an offline state this way avoids waiting for a request
    timeout when the network is known to be down.
    """

    def __init__(self, host: Optional[str], port: int = 443, timeout: float = 3.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    @classmethod
    def from_url(cls, url: str, timeout: float = 3.0) -> 'ConnectivityProbe':
        parsed = urlparse(url)
        port = parsed.port or (80 if parsed.scheme == 'http' else 443)
        return cls(parsed.hostname, port, timeout)

    def is_reachable(self) -> bool:
        if not self.host:
            return False
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug(f'Connectivity probe to {self.host}:{self.port} failed: {e}')
            return False

    __call__ = is_reachable


class OpenSkyClient:
    """
    Client for OpenSky Network API.

    Handles:
    - GET requests to /states/all endpoint
    - Bounding box filtering
    - Offline detection before each request
    - Mapping transport, HTTP and decoding failures to FetchError subclasses
    """

    def __init__(
        self,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 30.0,
        connectivity: Optional[Callable[[], bool]] = None,
        session: Optional[requests.Session] = None,
        log_body_limit: int = 2048,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.connectivity = connectivity or ConnectivityProbe.from_url(self.base_url)
        self.session = session or requests.Session()
        self.log_body_limit = log_body_limit

    @classmethod
    def from_config(cls) -> 'OpenSkyClient':
        """Create client from application configuration."""
        base_url = config.opensky.base_url
        return cls(
            base_url=base_url,
            timeout=config.opensky.timeout_seconds,
            connectivity=ConnectivityProbe.from_url(
                base_url, timeout=config.opensky.connectivity_timeout_seconds
            ),
            log_body_limit=config.opensky.log_body_limit,
        )

    def _prepare(self, bbox: BoundingBox) -> requests.PreparedRequest:
        """Build the GET request, or raise InvalidRequestError."""
        if bbox is None or not bbox.is_finite():
            raise InvalidRequestError()

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise InvalidRequestError()

        request = requests.Request(
            'GET',
            f'{self.base_url}/states/all',
            params=bbox.to_params(),
            headers={'X-Request-ID': str(uuid.uuid4())},
        )
        try:
            return self.session.prepare_request(request)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f'Could not build OpenSky request: {e}')
            raise InvalidRequestError() from e

    def _api_error_message(self, response: requests.Response) -> Optional[str]:
        """
        Extract ``message`` from an API error body ``{code?, message, details?}``.

        Returns None if the body is not a decodable error object.
        """
        try:
            body = response.json()
        except ValueError:
            logger.debug(f'API error body not decodable: {response.text[:200]!r}')
            return None
        if isinstance(body, dict) and isinstance(body.get('message'), str):
            return body['message']
        return None

    def get_snapshot(self, bbox: BoundingBox) -> Snapshot:
        """
        Fetch current flight records inside a bounding box.

        Args:
            bbox: Bounding box to query

        Returns:
            Snapshot with the OpenSky server time and parsed records

        Raises:
            FetchError subclass describing the failure
        """
        prepared = self._prepare(bbox)

        if not self.connectivity():
            logger.warning('OpenSky unreachable, skipping request')
            raise OfflineError()

        request_id = prepared.headers['X-Request-ID']
        log_request(prepared, request_id, self.log_body_limit)

        try:
            response = self.session.send(prepared, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error('OpenSky API timeout')
            log_response(request_id, error=e, body_limit=self.log_body_limit)
            raise UnknownFetchError(detail=str(e)) from e
        except requests.exceptions.RequestException as e:
            logger.error(f'OpenSky request failed: {e}')
            log_response(request_id, error=e, body_limit=self.log_body_limit)
            raise UnknownFetchError(detail=str(e)) from e

        log_response(request_id, response, body_limit=self.log_body_limit)

        if not 200 <= response.status_code < 300:
            if response.status_code == 429:
                logger.warning('OpenSky rate limit exceeded')
            else:
                logger.error(f'OpenSky API error: {response.status_code}')
            raise HttpError(response.status_code, self._api_error_message(response))

        try:
            snapshot = Snapshot.from_response(response.json())
        except ValueError as e:
            logger.error(f'OpenSky response could not be decoded: {e}')
            raise DecodingError() from e

        logger.info(f'Received {len(snapshot.records)} flights from OpenSky')

        return snapshot
