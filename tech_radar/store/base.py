"""
Storage abstractions.

The engines depend only on these interfaces, so production can bind a
durable store while tests use the in-memory implementations.

Every stored entity carries an integer `version`. Writes to an existing
entity go through compare_and_swap and fail with Conflict when the stored
version differs from the expected one.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from tech_radar.models.notice import DeprecationNotice
from tech_radar.models.snapshot import RadarSnapshot

T = TypeVar("T")


class EntryRepository(ABC, Generic[T]):
    """Keyed collection of versioned entities."""

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """
        Get an entity by id.

        Returns:
            A copy of the stored entity or None
        """
        pass

    @abstractmethod
    def put(self, entity: T) -> T:
        """
        Insert a new entity.

        Raises:
            Conflict: if an entity with the same id already exists
        """
        pass

    @abstractmethod
    def list(self) -> List[T]:
        """List all entities in insertion order."""
        pass

    @abstractmethod
    def compare_and_swap(self, entity: T, expected_version: int) -> T:
        """
        Replace an entity if the stored version equals expected_version.

        Raises:
            NotFound: if the entity does not exist
            Conflict: if the stored version differs
        """
        pass


class SnapshotRepository(ABC):
    """Append-only snapshot history."""

    @abstractmethod
    def add(self, snapshot: RadarSnapshot) -> RadarSnapshot:
        pass

    @abstractmethod
    def get(self, snapshot_id: str) -> Optional[RadarSnapshot]:
        pass

    @abstractmethod
    def list(self) -> List[RadarSnapshot]:
        """List snapshots in creation order."""
        pass

    @abstractmethod
    def mark_published(self, snapshot_id: str, published_at: datetime) -> RadarSnapshot:
        """
        Flip a snapshot to published.

        Raises:
            NotFound: unknown snapshot
            Conflict: snapshot already published
        """
        pass

    def latest_published(self) -> Optional[RadarSnapshot]:
        """Most recently created published snapshot."""
        published = [s for s in self.list() if s.is_published]
        return published[-1] if published else None


class NoticeRepository(ABC):
    """Storage for deprecation notices; listing is oldest first."""

    @abstractmethod
    def add(self, notice: DeprecationNotice) -> DeprecationNotice:
        pass

    @abstractmethod
    def get(self, notice_id: str) -> Optional[DeprecationNotice]:
        pass

    @abstractmethod
    def list(self) -> List[DeprecationNotice]:
        pass

    @abstractmethod
    def save(self, notice: DeprecationNotice) -> DeprecationNotice:
        """Overwrite an existing notice (acknowledgments, reminders, retirement)."""
        pass

    @abstractmethod
    def delete(self, notice_id: str) -> bool:
        """Remove a notice; returns False if it did not exist."""
        pass
