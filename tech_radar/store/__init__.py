"""
Storage package.

Contains:
- base: Repository interfaces
- memory: Thread-safe in-memory repositories
- sql: SQLAlchemy repositories for entries and snapshots
- redis_store: Redis repository for deprecation notices
"""

from tech_radar.store.base import EntryRepository, NoticeRepository, SnapshotRepository
from tech_radar.store.memory import (
    InMemoryEntryRepository,
    InMemoryNoticeRepository,
    InMemorySnapshotRepository,
)

__all__ = [
    "EntryRepository",
    "NoticeRepository",
    "SnapshotRepository",
    "InMemoryEntryRepository",
    "InMemoryNoticeRepository",
    "InMemorySnapshotRepository",
]
