"""
Entry store service.

Keyed collection of technology entries on top of an EntryRepository.
Exposes add/get/list; every other mutation goes through the transition
engine, which commits via `commit` (compare-and-swap on version).
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, NotFound, ValidationError
from tech_radar.events.bus import EventBus
from tech_radar.models.enums import (
    REVIEW_CYCLE_DAYS,
    DeprecationStatus,
    Movement,
    Quadrant,
    ReviewCycle,
    Ring,
    StatusFilter,
)
from tech_radar.models.events import TechnologyAdded
from tech_radar.models.technology import TechnologyEntry
from tech_radar.store.base import EntryRepository
from tech_radar.utils import new_id, utcnow
from tech_radar.validation import validate

logger = logging.getLogger(__name__)


def next_review_date(now: datetime, cycle: ReviewCycle) -> datetime:
    """Next review date for the given cadence."""
    return now + timedelta(days=REVIEW_CYCLE_DAYS[cycle])


class EntryStore:
    """
    Technology entry collection with optimistic versioning.

    Args:
        repository: Storage for technology entries
        bus: Event bus receiving TechnologyAdded
        settings: Settings override
    """

    def __init__(
        self,
        repository: EntryRepository[TechnologyEntry],
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.bus = bus
        self.settings = settings or get_settings()

    def add(
        self,
        entry: Union[TechnologyEntry, Dict[str, Any]],
        actor: str = "system",
        now: Optional[datetime] = None,
    ) -> TechnologyEntry:
        """
        Validate and insert a new entry.

        The store assigns a fresh id, version 1 and the bookkeeping
        timestamps; ring movement starts as no-change and the entry starts
        active.

        Raises:
            ValidationError: if the entry violates any invariant
        """
        now = now or utcnow()
        result = validate(entry)
        if not result.valid:
            logger.info(f"Rejected new entry: {result.errors}")
            raise ValidationError(result.errors)

        if isinstance(entry, dict):
            entry = TechnologyEntry.model_validate(entry)

        created = entry.model_copy(
            update={
                "id": new_id(),
                "movement": Movement.NO_CHANGE,
                "deprecation": None,
                "version": 1,
                "introduced_date": entry.introduced_date or now,
                "last_review_date": now,
                "next_review_date": next_review_date(now, self.settings.review_cycle),
                "created_by": actor,
                "created_at": now,
                "updated_by": actor,
                "updated_at": now,
            },
            deep=True,
        )
        stored = self.repository.put(created)
        logger.info(
            f"Added technology {stored.name}",
            extra={"technology_id": stored.id, "ring": stored.ring.value},
        )
        if self.bus is not None:
            self.bus.publish(TechnologyAdded(technology_id=stored.id, ring=stored.ring, occurred_at=now))
        return stored

    def find(self, entry_id: str) -> Optional[TechnologyEntry]:
        return self.repository.get(entry_id)

    def get(self, entry_id: str) -> TechnologyEntry:
        """
        Raises:
            NotFound: unknown entry id
        """
        entry = self.repository.get(entry_id)
        if entry is None:
            raise NotFound("Technology", entry_id)
        return entry

    def list(
        self,
        quadrant: Optional[Quadrant] = None,
        ring: Optional[Ring] = None,
        status: StatusFilter = StatusFilter.ALL,
        tags: Optional[Iterable[str]] = None,
    ) -> List[TechnologyEntry]:
        """
        List entries matching every given filter.

        Args:
            quadrant: Only entries in this quadrant
            ring: Only entries in this ring
            status: active, deprecated (any non-active status) or all
            tags: Entry matches when it has at least one of these tags
        """
        wanted_tags = set(tags or [])
        entries = []
        for entry in self.repository.list():
            if quadrant is not None and entry.quadrant != quadrant:
                continue
            if ring is not None and entry.ring != ring:
                continue
            if status == StatusFilter.ACTIVE and entry.deprecation_status != DeprecationStatus.ACTIVE:
                continue
            if status == StatusFilter.DEPRECATED and entry.deprecation_status == DeprecationStatus.ACTIVE:
                continue
            if wanted_tags and not wanted_tags.intersection(entry.tags):
                continue
            entries.append(entry)
        return entries

    def load_for_update(self, entry_id: str, expected_version: Optional[int] = None) -> TechnologyEntry:
        """
        Read an entry that is about to be modified.

        Raises:
            NotFound: unknown entry id
            Conflict: expected_version given and already stale
        """
        entry = self.get(entry_id)
        if expected_version is not None and entry.version != expected_version:
            raise Conflict(
                f"Technology {entry_id} was modified concurrently",
                entity_id=entry_id,
                expected_version=expected_version,
                actual_version=entry.version,
            )
        return entry

    def commit(
        self,
        entry: TechnologyEntry,
        expected_version: int,
        actor: str,
        now: datetime,
    ) -> TechnologyEntry:
        """Write a modified entry, bumping its version by one."""
        updated = entry.model_copy(update={
            "version": expected_version + 1,
            "updated_by": actor,
            "updated_at": now,
        })
        return self.repository.compare_and_swap(updated, expected_version)
