"""
Snapshot & diff engine.

A snapshot freezes the live store into an immutable, dated copy and
records its changes against the latest published snapshot:

    absent in baseline           -> added
    ring differs                 -> moved (from, to)
    same ring, version differs   -> updated
    only in baseline             -> removed
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import NotFound
from tech_radar.events.bus import EventBus
from tech_radar.models.enums import DeprecationStatus, Quadrant, Ring
from tech_radar.models.events import RadarPublished
from tech_radar.models.snapshot import (
    RadarSnapshot,
    RingMove,
    SnapshotChanges,
    SnapshotSummary,
)
from tech_radar.models.technology import TechnologyEntry
from tech_radar.services.entry_store import EntryStore
from tech_radar.store.base import SnapshotRepository
from tech_radar.utils import utcnow

logger = logging.getLogger(__name__)

VERSION_DATE_FORMAT = "%Y.%m.%d"


def diff_technologies(
    current: List[TechnologyEntry],
    baseline: Optional[RadarSnapshot],
) -> SnapshotChanges:
    """Structural diff of the current entries against a baseline snapshot."""
    if baseline is None:
        return SnapshotChanges(added=[t.id for t in current])

    previous = {t.id: t for t in baseline.technologies}
    changes = SnapshotChanges()
    for technology in current:
        before = previous.get(technology.id)
        if before is None:
            changes.added.append(technology.id)
        elif before.ring != technology.ring:
            changes.moved.append(RingMove(
                technology_id=technology.id,
                from_ring=before.ring,
                to_ring=technology.ring,
            ))
        elif before.version != technology.version:
            changes.updated.append(technology.id)

    current_ids = {t.id for t in current}
    changes.removed = [tid for tid in previous if tid not in current_ids]
    return changes


def summarize(
    technologies: List[TechnologyEntry],
    now: datetime,
    new_window_days: int = 30,
) -> SnapshotSummary:
    """Counts per quadrant and ring, recent additions and deprecated entries."""
    by_quadrant = {q.value: 0 for q in Quadrant}
    by_ring = {r.value: 0 for r in Ring}
    window_start = now - timedelta(days=new_window_days)
    new_count = 0
    deprecated_count = 0

    for technology in technologies:
        by_quadrant[technology.quadrant.value] += 1
        by_ring[technology.ring.value] += 1
        if technology.created_at is not None and window_start <= technology.created_at <= now:
            new_count += 1
        if technology.deprecation_status != DeprecationStatus.ACTIVE:
            deprecated_count += 1

    return SnapshotSummary(
        total_technologies=len(technologies),
        by_quadrant=by_quadrant,
        by_ring=by_ring,
        new_technologies=new_count,
        deprecated_technologies=deprecated_count,
    )


class SnapshotEngine:
    """
    Creates, publishes and looks up radar snapshots.

    Args:
        store: Live entry store
        snapshots: Snapshot history repository
        bus: Event bus receiving RadarPublished
        settings: Settings override
    """

    def __init__(
        self,
        store: EntryStore,
        snapshots: SnapshotRepository,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.snapshots = snapshots
        self.bus = bus
        self.settings = settings or get_settings()

    def next_version(self, now: datetime) -> str:
        """
        Date-derived version string.

        The first snapshot of a day is YYYY.MM.DD; later ones on the same
        day get .2, .3 and so on.
        """
        base = now.strftime(VERSION_DATE_FORMAT)
        taken = 0
        for snapshot in self.snapshots.list():
            if snapshot.version == base:
                taken = max(taken, 1)
            elif snapshot.version.startswith(base + "."):
                suffix = snapshot.version[len(base) + 1:]
                if suffix.isdigit():
                    taken = max(taken, int(suffix))
        return base if taken == 0 else f"{base}.{taken + 1}"

    def create_snapshot(
        self,
        title: str,
        actor: str = "system",
        publish: bool = False,
        now: Optional[datetime] = None,
    ) -> RadarSnapshot:
        """Freeze the store into a new snapshot, optionally publishing it."""
        now = now or utcnow()
        technologies = self.store.list()
        baseline = self.snapshots.latest_published()
        snapshot = RadarSnapshot(
            version=self.next_version(now),
            title=title,
            date=now,
            technologies=technologies,
            changes=diff_technologies(technologies, baseline),
            summary=summarize(technologies, now, self.settings.new_technology_window_days),
            created_by=actor,
            created_at=now,
        )
        stored = self.snapshots.add(snapshot)
        changes = stored.changes
        logger.info(
            f"Created snapshot {stored.version}: {len(changes.added)} added, "
            f"{len(changes.moved)} moved, {len(changes.updated)} updated, {len(changes.removed)} removed",
            extra={"snapshot_id": stored.id, "baseline": baseline.version if baseline else None},
        )
        if publish:
            return self.publish_snapshot(stored.id, now=now)
        return stored

    def publish_snapshot(self, snapshot_id: str, now: Optional[datetime] = None) -> RadarSnapshot:
        """
        Publish a snapshot; it becomes the diff baseline.

        Raises:
            NotFound: unknown snapshot
            Conflict: already published
        """
        now = now or utcnow()
        published = self.snapshots.mark_published(snapshot_id, now)
        logger.info(f"Published snapshot {published.version}", extra={"snapshot_id": snapshot_id})
        if self.bus is not None:
            self.bus.publish(RadarPublished(snapshot_id=published.id, version=published.version, occurred_at=now))
        return published

    def get_snapshot(self, snapshot_id: str) -> RadarSnapshot:
        snapshot = self.snapshots.get(snapshot_id)
        if snapshot is None:
            raise NotFound("Snapshot", snapshot_id)
        return snapshot

    def list_snapshots(self) -> List[RadarSnapshot]:
        return self.snapshots.list()

    def latest_published(self) -> Optional[RadarSnapshot]:
        return self.snapshots.latest_published()
