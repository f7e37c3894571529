"""
Database models for SkyTrack.

Only the snapshot cache is persisted; flight records themselves live in
memory in the flight store.
"""

from skytrack.models.base import Base, make_engine, make_session_factory, init_db
from skytrack.models.cache_entry import CacheEntry

__all__ = [
    'Base',
    'make_engine',
    'make_session_factory',
    'init_db',
    'CacheEntry',
]
