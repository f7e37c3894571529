"""
SkyTrack Package.

Live aircraft tracking over a bounding box, built on the OpenSky Network
API, Flask, SQLAlchemy and requests.

Modules:
    api/         REST endpoints for flights and watch control
    models/      SQLAlchemy models backing the snapshot cache
    ingestion/   OpenSky client, state vector decoding, refresh scheduler
    store.py     Flight store with filtered/derived views
    observable.py Replaying and broadcast-only relays
    cache.py     Persistent key/value cache for the last good snapshot
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
