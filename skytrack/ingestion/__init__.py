"""
Data ingestion module for SkyTrack.

Handles polling the OpenSky API and decoding state vectors into flight
records. The refresh scheduler lives in skytrack.ingestion.scheduler and
is imported from there, since it depends on the flight store.
"""

from skytrack.ingestion.opensky_client import BoundingBox, OpenSkyClient
from skytrack.ingestion.flight_record import FlightRecord, Snapshot

__all__ = ['BoundingBox', 'OpenSkyClient', 'FlightRecord', 'Snapshot']
