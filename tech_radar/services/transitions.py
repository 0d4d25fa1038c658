"""
State transition engine.

Owns every change to a technology's ring and deprecation status:

    ring order:          hold < assess < trial < adopt
    deprecation status:  active -> deprecated -> sunset -> removed

`active -> deprecated` is operator-initiated (deprecate); the later steps
are applied by `advance`, which a periodic caller invokes with the
current time.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

import pydantic

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, ValidationError
from tech_radar.events.bus import EventBus
from tech_radar.models.enums import (
    DeprecationStatus,
    MigrationEffort,
    Movement,
    NoticeSeverity,
    NoticeTargetType,
    RationaleField,
    Ring,
)
from tech_radar.models.events import TechnologyDeprecated, TechnologyMoved
from tech_radar.models.notice import DeprecationNotice, MigrationGuidance
from tech_radar.models.technology import Deprecation, StatusTransition, TechnologyEntry
from tech_radar.services.entry_store import EntryStore, next_review_date
from tech_radar.services.scheduler import DeprecationScheduler
from tech_radar.utils import utcnow
from tech_radar.validation import coerce_enum, validate

logger = logging.getLogger(__name__)

# Fields update_details may touch. Lifecycle fields, identity and the
# append-only rationale are excluded.
EDITABLE_FIELDS = frozenset({
    "name",
    "description",
    "quadrant",
    "category",
    "tags",
    "url",
    "assessment",
    "business_impact",
    "adoption_level",
    "team_usage",
    "dependencies",
    "alternatives",
    "supersedes",
})

# Sub-records merged key by key instead of replaced.
MERGED_FIELDS = ("assessment", "business_impact")


def calculate_movement(old_ring: Ring, new_ring: Ring) -> Movement:
    """in when the new ring ranks higher, out when lower, else no-change."""
    if new_ring.rank > old_ring.rank:
        return Movement.IN
    if new_ring.rank < old_ring.rank:
        return Movement.OUT
    return Movement.NO_CHANGE


class TransitionEngine:
    """
    Applies ring moves, deprecations and detail edits to stored entries.

    Args:
        store: Entry store (commits are compare-and-swap)
        scheduler: Deprecation scheduler issuing notices
        bus: Event bus for TechnologyMoved / TechnologyDeprecated
        settings: Settings override
    """

    def __init__(
        self,
        store: EntryStore,
        scheduler: DeprecationScheduler,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.bus = bus
        self.settings = settings or get_settings()

    def _publish(self, event) -> None:
        if self.bus is not None:
            self.bus.publish(event)

    def _commit_with_notice(
        self,
        entry: TechnologyEntry,
        expected_version: int,
        notice: DeprecationNotice,
        actor: str,
        now: datetime,
    ) -> TechnologyEntry:
        """Issue the notice, then commit; a failed commit withdraws the notice."""
        self.scheduler.issue(notice)
        try:
            return self.store.commit(entry, expected_version, actor, now)
        except Exception:
            self.scheduler.withdraw(notice)
            raise

    def _deprecated_event(self, entry: TechnologyEntry, reason: str, now: datetime) -> TechnologyDeprecated:
        return TechnologyDeprecated(
            technology_id=entry.id,
            name=entry.name,
            strategic_value=entry.business_impact.strategic_value,
            reason=reason,
            adoption_level=entry.adoption_level,
            occurred_at=now,
        )

    def move(
        self,
        entry_id: str,
        new_ring: Union[Ring, str],
        rationale: str,
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TechnologyEntry:
        """
        Move an entry to another ring.

        Entering hold from another ring publishes TechnologyDeprecated and
        issues an advisory notice; the deprecation status is unchanged.

        Raises:
            NotFound: unknown entry id
            Conflict: stale expected_version, or a deprecated entry moved
                out of hold
        """
        now = now or utcnow()
        new_ring = coerce_enum(Ring, new_ring, "ring")
        entry = self.store.load_for_update(entry_id, expected_version)
        old_ring = entry.ring

        if entry.is_deprecated and new_ring != Ring.HOLD:
            raise Conflict(
                f"Technology {entry.name} is {entry.deprecation_status.value} and must stay on hold",
                entity_id=entry.id,
            )

        movement = calculate_movement(old_ring, new_ring)
        rationale_record = entry.rationale.model_copy(update={
            "decision_factors": entry.rationale.decision_factors + [
                f"Moved from {old_ring.value} to {new_ring.value}: {rationale}"
            ],
        })
        moved = entry.model_copy(update={
            "ring": new_ring,
            "movement": movement,
            "rationale": rationale_record,
            "last_review_date": now,
            "next_review_date": next_review_date(now, self.settings.review_cycle),
        })
        entering_hold = new_ring == Ring.HOLD and old_ring != Ring.HOLD
        if entering_hold:
            committed = self._commit_with_notice(
                moved, entry.version, self._hold_notice(entry, rationale, actor, now), actor, now,
            )
        else:
            committed = self.store.commit(moved, entry.version, actor, now)
        logger.info(
            f"Moved {committed.name} from {old_ring.value} to {new_ring.value}",
            extra={"technology_id": committed.id, "movement": movement.value, "actor": actor},
        )

        self._publish(TechnologyMoved(
            technology_id=committed.id,
            from_ring=old_ring,
            to_ring=new_ring,
            movement=movement,
            moved_by=actor,
            occurred_at=now,
        ))
        if entering_hold:
            self._publish(self._deprecated_event(committed, rationale, now))
        return committed

    def _hold_notice(self, entry: TechnologyEntry, reason: str, actor: str, now: datetime) -> DeprecationNotice:
        return self.scheduler.build_notice(
            type=NoticeTargetType.TECHNOLOGY,
            target_id=entry.id,
            title=f"Technology On Hold: {entry.name}",
            message=f"{entry.name} has been moved to HOLD status. Reason: {reason}",
            severity=NoticeSeverity.INFO,
            now=now,
            recipients=self.scheduler.build_recipients(teams=[u.team for u in entry.team_usage]),
            actor=actor,
        )

    def deprecate(
        self,
        entry_id: str,
        reason: str,
        actor: str = "system",
        migration_path: Optional[str] = None,
        replacement_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DeprecationNotice:
        """
        Deprecate an active entry.

        Forces the entry into hold with movement out, stamps the schedule
        dates and returns the warning notice sent to the configured
        addresses and to every team using the technology.

        Raises:
            NotFound: unknown entry id
            Conflict: entry already deprecated, or stale expected_version
        """
        now = now or utcnow()
        entry = self.store.load_for_update(entry_id, expected_version)
        if entry.is_deprecated:
            raise Conflict(
                f"Technology {entry.name} is already {entry.deprecation_status.value}",
                entity_id=entry.id,
            )

        schedule = self.scheduler.compute_schedule(now)
        deprecation = Deprecation(
            status=DeprecationStatus.DEPRECATED,
            deprecated_date=schedule.deprecation_date,
            sunset_date=schedule.sunset_date,
            removal_date=schedule.removal_date,
            reason=reason,
            migration_path=migration_path,
            replacement_technology=replacement_id,
            history=[StatusTransition(status=DeprecationStatus.DEPRECATED, at=now)],
        )
        rationale_record = entry.rationale.model_copy(update={
            "decision_factors": entry.rationale.decision_factors + [f"Deprecated: {reason}"],
        })
        deprecated = entry.model_copy(update={
            "ring": Ring.HOLD,
            "movement": Movement.OUT,
            "deprecation": deprecation,
            "rationale": rationale_record,
        })

        migration = None
        if migration_path:
            migration = MigrationGuidance(
                has_automated_migration=False,
                migration_guide=migration_path,
                replacement_technology=replacement_id,
                estimated_effort=MigrationEffort.MEDIUM,
            )
        notice = self.scheduler.build_notice(
            type=NoticeTargetType.TECHNOLOGY,
            target_id=entry.id,
            title=f"Technology Deprecation: {entry.name}",
            message=f"{entry.name} has been deprecated. {reason}",
            severity=NoticeSeverity.WARNING,
            now=now,
            schedule=schedule,
            recipients=self.scheduler.build_recipients(teams=[u.team for u in entry.team_usage]),
            migration=migration,
            actor=actor,
        )
        committed = self._commit_with_notice(deprecated, entry.version, notice, actor, now)
        logger.info(
            f"Deprecated {committed.name}",
            extra={"technology_id": committed.id, "sunset_date": schedule.sunset_date.isoformat()},
        )

        self._publish(self._deprecated_event(committed, reason, now))
        return notice

    def advance(
        self,
        entry_id: str,
        now: Optional[datetime] = None,
        actor: str = "system",
    ) -> TechnologyEntry:
        """
        Apply every due deprecation step for the given time.

        deprecated -> sunset once now >= sunset_date, then sunset -> removed
        once now >= removal_date. Calling again with the same `now` changes
        nothing and does not bump the version.
        """
        now = now or utcnow()
        entry = self.store.get(entry_id)
        deprecation = entry.deprecation
        if deprecation is None or deprecation.is_active:
            return entry

        status = deprecation.status
        history = list(deprecation.history)
        if status == DeprecationStatus.DEPRECATED and deprecation.sunset_date and now >= deprecation.sunset_date:
            status = DeprecationStatus.SUNSET
            history.append(StatusTransition(status=status, at=now))
        if status == DeprecationStatus.SUNSET and deprecation.removal_date and now >= deprecation.removal_date:
            status = DeprecationStatus.REMOVED
            history.append(StatusTransition(status=status, at=now))

        if status == deprecation.status:
            return entry

        advanced = entry.model_copy(update={
            "deprecation": deprecation.model_copy(update={"status": status, "history": history}),
        })
        committed = self.store.commit(advanced, entry.version, actor, now)
        logger.info(
            f"Advanced {committed.name} from {deprecation.status.value} to {status.value}",
            extra={"technology_id": committed.id},
        )
        return committed

    def update_details(
        self,
        entry_id: str,
        changes: Dict[str, Any],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TechnologyEntry:
        """
        Edit non-lifecycle fields and re-validate the result.

        Raises:
            ValidationError: forbidden field, or the edited entry is invalid
            NotFound: unknown entry id
            Conflict: stale expected_version
        """
        now = now or utcnow()
        forbidden = sorted(set(changes) - EDITABLE_FIELDS)
        if forbidden:
            raise ValidationError([f"Field '{field}' cannot be updated directly" for field in forbidden])

        entry = self.store.load_for_update(entry_id, expected_version)
        data = entry.model_dump()
        for field, value in changes.items():
            if isinstance(value, pydantic.BaseModel):
                value = value.model_dump()
            if field in MERGED_FIELDS and isinstance(value, dict):
                merged = dict(data[field])
                merged.pop("overall_score", None)
                merged.update(value)
                data[field] = merged
            else:
                data[field] = value

        result = validate(data)
        if not result.valid:
            raise ValidationError(result.errors)

        updated = TechnologyEntry.model_validate(data)
        committed = self.store.commit(updated, entry.version, actor, now)
        logger.info(
            f"Updated {committed.name}: {sorted(changes)}",
            extra={"technology_id": committed.id, "actor": actor},
        )
        return committed

    def append_rationale(
        self,
        entry_id: str,
        field: Union[RationaleField, str],
        text: str,
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TechnologyEntry:
        """Append one line to a rationale list."""
        now = now or utcnow()
        field = coerce_enum(RationaleField, field, "rationale field")
        if not text or not text.strip():
            raise ValidationError(["Rationale text is required"])

        entry = self.store.load_for_update(entry_id, expected_version)
        current = getattr(entry.rationale, field.value)
        rationale_record = entry.rationale.model_copy(update={field.value: current + [text]})
        committed = self.store.commit(
            entry.model_copy(update={"rationale": rationale_record}),
            entry.version,
            actor,
            now,
        )
        logger.debug(f"Appended {field.value} to {committed.name}")
        return committed
