"""
CacheEntry model - persisted key/value pairs.

Backs the snapshot cache so the last good flight list survives process
restarts. Values are whole JSON documents, replaced on every write.
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from skytrack.models.base import Base


class CacheEntry(Base):
    """
    One cached value keyed by a fixed string.

    The core only uses a couple of keys (the last flight list and its
    timestamp), so no indexes beyond the primary key are needed.
    """

    __tablename__ = 'cache_entries'

    key: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        comment='Cache key'
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment='JSON-serialized value'
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment='Last write time'
    )

    def __repr__(self) -> str:
        return f'<CacheEntry {self.key} ({len(self.value)} bytes)>'
