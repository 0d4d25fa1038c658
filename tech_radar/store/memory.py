"""
In-memory repositories.

Used by tests and by single-process deployments. A lock serializes
writers so compare-and-swap is atomic per repository instance.
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional

from tech_radar.errors import Conflict, NotFound
from tech_radar.models.notice import DeprecationNotice
from tech_radar.models.snapshot import RadarSnapshot
from tech_radar.store.base import EntryRepository, NoticeRepository, SnapshotRepository, T

logger = logging.getLogger(__name__)


class InMemoryEntryRepository(EntryRepository[T]):
    """Dict-backed entry repository holding deep copies."""

    def __init__(self, entity_name: str = "Entity"):
        self.entity_name = entity_name
        self._items: "OrderedDict[str, T]" = OrderedDict()
        self._lock = threading.RLock()

    def get(self, entity_id: str) -> Optional[T]:
        with self._lock:
            item = self._items.get(entity_id)
            return item.model_copy(deep=True) if item is not None else None

    def put(self, entity: T) -> T:
        with self._lock:
            if entity.id in self._items:
                raise Conflict(
                    f"{self.entity_name} with ID {entity.id} already exists",
                    entity_id=entity.id,
                )
            self._items[entity.id] = entity.model_copy(deep=True)
            return entity.model_copy(deep=True)

    def list(self) -> List[T]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def compare_and_swap(self, entity: T, expected_version: int) -> T:
        with self._lock:
            current = self._items.get(entity.id)
            if current is None:
                raise NotFound(self.entity_name, entity.id)
            if current.version != expected_version:
                logger.warning(
                    f"Stale write rejected for {self.entity_name} {entity.id}",
                    extra={"expected_version": expected_version, "actual_version": current.version},
                )
                raise Conflict(
                    f"{self.entity_name} {entity.id} was modified concurrently",
                    entity_id=entity.id,
                    expected_version=expected_version,
                    actual_version=current.version,
                )
            self._items[entity.id] = entity.model_copy(deep=True)
            return entity.model_copy(deep=True)


class InMemorySnapshotRepository(SnapshotRepository):
    def __init__(self):
        self._snapshots: "OrderedDict[str, RadarSnapshot]" = OrderedDict()
        self._lock = threading.RLock()

    def add(self, snapshot: RadarSnapshot) -> RadarSnapshot:
        with self._lock:
            if snapshot.id in self._snapshots:
                raise Conflict(f"Snapshot with ID {snapshot.id} already exists", entity_id=snapshot.id)
            self._snapshots[snapshot.id] = snapshot.model_copy(deep=True)
            return snapshot.model_copy(deep=True)

    def get(self, snapshot_id: str) -> Optional[RadarSnapshot]:
        with self._lock:
            snapshot = self._snapshots.get(snapshot_id)
            return snapshot.model_copy(deep=True) if snapshot is not None else None

    def list(self) -> List[RadarSnapshot]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._snapshots.values()]

    def mark_published(self, snapshot_id: str, published_at: datetime) -> RadarSnapshot:
        with self._lock:
            snapshot = self._snapshots.get(snapshot_id)
            if snapshot is None:
                raise NotFound("Snapshot", snapshot_id)
            if snapshot.is_published:
                raise Conflict(f"Snapshot {snapshot_id} is already published", entity_id=snapshot_id)
            published = snapshot.model_copy(
                update={"is_published": True, "published_at": published_at},
                deep=True,
            )
            self._snapshots[snapshot_id] = published
            return published.model_copy(deep=True)


class InMemoryNoticeRepository(NoticeRepository):
    def __init__(self):
        self._notices: Dict[str, DeprecationNotice] = OrderedDict()
        self._lock = threading.RLock()

    def add(self, notice: DeprecationNotice) -> DeprecationNotice:
        with self._lock:
            if notice.id in self._notices:
                raise Conflict(f"Notice with ID {notice.id} already exists", entity_id=notice.id)
            self._notices[notice.id] = notice.model_copy(deep=True)
            return notice.model_copy(deep=True)

    def get(self, notice_id: str) -> Optional[DeprecationNotice]:
        with self._lock:
            notice = self._notices.get(notice_id)
            return notice.model_copy(deep=True) if notice is not None else None

    def list(self) -> List[DeprecationNotice]:
        with self._lock:
            notices = sorted(self._notices.values(), key=lambda n: n.created_at)
            return [n.model_copy(deep=True) for n in notices]

    def save(self, notice: DeprecationNotice) -> DeprecationNotice:
        with self._lock:
            if notice.id not in self._notices:
                raise NotFound("Deprecation notice", notice.id)
            self._notices[notice.id] = notice.model_copy(deep=True)
            return notice.model_copy(deep=True)

    def delete(self, notice_id: str) -> bool:
        with self._lock:
            return self._notices.pop(notice_id, None) is not None
