"""
Persistent key/value cache for the last good flight snapshot.

The cache lets the flight store fall back to the most recent flight list
when the network is down, including right after a restart. It is a
passive service: values are copied in as JSON and decoded into fresh
objects on the way out, so no in-memory state is shared with callers.

Failures are never surfaced: a value that cannot be serialized, a corrupt
row or an unavailable database all degrade to a logged no-op / cache miss.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from skytrack.config import config
from skytrack.models import CacheEntry, init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

# Keys used by the flight store
CACHED_FLIGHTS_KEY = 'cached_flights'
CACHE_TIMESTAMP_KEY = 'cache_timestamp'


class PersistentCache:
    """
    Thread-safe JSON key/value store backed by SQLAlchemy.

    Writes replace the whole value for a key; there is no partial update.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or config.cache.database_url
        self._engine = make_engine(self.database_url)
        self._session_factory = make_session_factory(self._engine)
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

        init_db(self._engine)
        logger.debug(f'Cache initialized at {self.database_url}')

    def put(self, key: str, value: Any) -> bool:
        """
        Serialize ``value`` and store it under ``key``, replacing any prior value.

        Returns True if the write was committed.
        """
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f'Cache put skipped for {key!r}: value not serializable ({e})')
            return False

        with self._lock:
            try:
                with self._session_factory() as session:
                    session.merge(CacheEntry(
                        key=key,
                        value=payload,
                        updated_at=datetime.now(timezone.utc),
                    ))
                    session.commit()
                return True
            except SQLAlchemyError as e:
                logger.error(f'Cache write failed for {key!r}: {e}')
                return False

    def get(self, key: str) -> Optional[Any]:
        """
        Get the decoded value for ``key``.

        Returns None if absent, undecodable, or the database is unavailable.
        """
        with self._lock:
            try:
                with self._session_factory() as session:
                    entry = session.get(CacheEntry, key)
                    payload = entry.value if entry else None
            except SQLAlchemyError as e:
                logger.error(f'Cache read failed for {key!r}: {e}')
                payload = None

            if payload is None:
                self._misses += 1
                return None

            try:
                value = json.loads(payload)
            except ValueError as e:
                logger.warning(f'Discarding corrupt cache entry {key!r}: {e}')
                self._misses += 1
                return None

            self._hits += 1
            return value

    def remove(self, key: str) -> None:
        """Delete ``key`` if present."""
        with self._lock:
            try:
                with self._session_factory() as session:
                    session.execute(delete(CacheEntry).where(CacheEntry.key == key))
                    session.commit()
            except SQLAlchemyError as e:
                logger.error(f'Cache delete failed for {key!r}: {e}')

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            try:
                with self._session_factory() as session:
                    session.execute(delete(CacheEntry))
                    session.commit()
            except SQLAlchemyError as e:
                logger.error(f'Cache clear failed: {e}')

    def close(self) -> None:
        """Release database connections."""
        self._engine.dispose()

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0,
                'database_url': self.database_url,
            }
