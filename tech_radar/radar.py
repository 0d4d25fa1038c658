"""
TechRadar facade.

The stable programmatic surface over the engines. Every operation returns
an OperationResult; RadarErrors become structured failures and anything
unexpected is logged and reported as INTERNAL_ERROR.

Usage:
    radar = TechRadar()
    result = radar.add_technology(entry, actor="alice")
    if result.success:
        radar.move_technology(result.data.id, "adopt", "proven in production")
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from tech_radar.clients.incident_client import IncidentClient
from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import NotFound, RadarError
from tech_radar.events.bus import EventBus
from tech_radar.events.handlers import IncidentHandler
from tech_radar.models.api_version import ApiVersion, UsageMetrics
from tech_radar.models.enums import (
    ApiLifecycleStatus,
    DeprecationStatus,
    NoticeSeverity,
    NoticeTargetType,
    Quadrant,
    RationaleField,
    Ring,
    StatusFilter,
    VersioningStrategy,
)
from tech_radar.models.notice import DeprecationNotice
from tech_radar.models.results import ErrorInfo, OperationResult
from tech_radar.models.technology import TechnologyEntry
from tech_radar.services.api_versions import ApiVersionManager
from tech_radar.services.entry_store import EntryStore
from tech_radar.services.layout import LayoutEngine
from tech_radar.services.scheduler import DeprecationScheduler
from tech_radar.services.snapshots import SnapshotEngine
from tech_radar.services.transitions import TransitionEngine
from tech_radar.store.base import EntryRepository, NoticeRepository, SnapshotRepository
from tech_radar.store.memory import (
    InMemoryEntryRepository,
    InMemoryNoticeRepository,
    InMemorySnapshotRepository,
)
from tech_radar.utils import utcnow
from tech_radar.validation import validate

logger = logging.getLogger(__name__)


class TechRadar:
    """
    Facade wiring the entry store, transition engine, snapshot engine,
    scheduler, layout engine and API version manager.

    Repositories default to the in-memory implementations. Constructing a
    radar with an inconsistent deprecation schedule raises
    SchedulingInconsistency; nothing else raises across this surface.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        entries: Optional[EntryRepository[TechnologyEntry]] = None,
        api_versions: Optional[EntryRepository[ApiVersion]] = None,
        snapshots: Optional[SnapshotRepository] = None,
        notices: Optional[NoticeRepository] = None,
        bus: Optional[EventBus] = None,
        incident_client: Optional[IncidentClient] = None,
    ):
        self.settings = settings or get_settings()
        self.bus = bus or EventBus()

        self.scheduler = DeprecationScheduler(notices or InMemoryNoticeRepository(), settings=self.settings)
        self.store = EntryStore(
            entries or InMemoryEntryRepository("Technology"),
            bus=self.bus,
            settings=self.settings,
        )
        self.transitions = TransitionEngine(self.store, self.scheduler, bus=self.bus, settings=self.settings)
        self.snapshots = SnapshotEngine(
            self.store,
            snapshots or InMemorySnapshotRepository(),
            bus=self.bus,
            settings=self.settings,
        )
        self.layout_engine = LayoutEngine(settings=self.settings)
        self.api_versions = ApiVersionManager(
            api_versions or InMemoryEntryRepository("API version"),
            self.scheduler,
            bus=self.bus,
            settings=self.settings,
        )

        self.incident_handler: Optional[IncidentHandler] = None
        if incident_client is not None or self.settings.incident_api_enabled:
            self.incident_handler = IncidentHandler(client=incident_client, settings=self.settings)
            self.incident_handler.register(self.bus)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "TechRadar":
        """
        Build a radar on the durable stores: SQL for entries, API versions
        and snapshots (settings.database_url), Redis for notices.
        """
        from tech_radar.store.redis_store import RedisNoticeRepository
        from tech_radar.store.sql import SQLEntryRepository, SQLSnapshotRepository, create_session_factory

        settings = settings or get_settings()
        session_factory = create_session_factory(settings=settings)
        return cls(
            settings=settings,
            entries=SQLEntryRepository(session_factory, TechnologyEntry, "technology", "Technology"),
            api_versions=SQLEntryRepository(session_factory, ApiVersion, "api_version", "API version"),
            snapshots=SQLSnapshotRepository(session_factory),
            notices=RedisNoticeRepository(settings=settings),
            **kwargs,
        )

    def close(self) -> None:
        """Deliver queued incident requests and stop the incident worker."""
        if self.incident_handler is not None:
            self.incident_handler.shutdown()
            self.incident_handler.client.close()

    def _run(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> OperationResult:
        try:
            return OperationResult.create_success(func(*args, **kwargs))
        except RadarError as e:
            logger.warning(
                f"{operation} failed: {e.message}",
                extra={"operation": operation, "error_code": e.code.value},
            )
            return OperationResult.create_failure(e.to_error_info())
        except Exception as e:
            logger.error(f"{operation} failed unexpectedly: {e}", extra={"operation": operation}, exc_info=True)
            return OperationResult.create_failure(ErrorInfo.from_exception(e))

    # Technologies

    def validate(self, entry: Union[TechnologyEntry, Dict[str, Any]]) -> OperationResult:
        return self._run("validate", validate, entry)

    def add_technology(
        self,
        entry: Union[TechnologyEntry, Dict[str, Any]],
        actor: str = "system",
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run("add_technology", self.store.add, entry, actor=actor, now=now)

    def get_technology(self, entry_id: str) -> OperationResult:
        return self._run("get_technology", self.store.get, entry_id)

    def list_technologies(
        self,
        quadrant: Optional[Quadrant] = None,
        ring: Optional[Ring] = None,
        status: StatusFilter = StatusFilter.ALL,
        tags: Optional[Iterable[str]] = None,
    ) -> OperationResult:
        return self._run(
            "list_technologies", self.store.list,
            quadrant=quadrant, ring=ring, status=status, tags=tags,
        )

    def move_technology(
        self,
        entry_id: str,
        new_ring: Union[Ring, str],
        rationale: str,
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "move_technology", self.transitions.move,
            entry_id, new_ring, rationale, actor=actor, expected_version=expected_version, now=now,
        )

    def deprecate_technology(
        self,
        entry_id: str,
        reason: str,
        actor: str = "system",
        migration_path: Optional[str] = None,
        replacement_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "deprecate_technology", self.transitions.deprecate,
            entry_id, reason, actor=actor, migration_path=migration_path,
            replacement_id=replacement_id, expected_version=expected_version, now=now,
        )

    def advance_technology(self, entry_id: str, now: Optional[datetime] = None) -> OperationResult:
        return self._run("advance_technology", self.transitions.advance, entry_id, now=now)

    def update_technology(
        self,
        entry_id: str,
        changes: Dict[str, Any],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "update_technology", self.transitions.update_details,
            entry_id, changes, actor=actor, expected_version=expected_version, now=now,
        )

    def append_rationale(
        self,
        entry_id: str,
        field: Union[RationaleField, str],
        text: str,
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "append_rationale", self.transitions.append_rationale,
            entry_id, field, text, actor=actor, expected_version=expected_version, now=now,
        )

    def advance_all(self, now: Optional[datetime] = None) -> OperationResult:
        """
        Periodic sweep: advance every deprecated technology and API version,
        then retire notices whose targets are gone.

        Returns ids of the entities whose status changed.
        """
        return self._run("advance_all", self._advance_all, now or utcnow())

    def _advance_all(self, now: datetime) -> Dict[str, List[str]]:
        changed_technologies = []
        for entry in self.store.list(status=StatusFilter.DEPRECATED):
            advanced = self.transitions.advance(entry.id, now=now)
            if advanced.version != entry.version:
                changed_technologies.append(entry.id)

        changed_versions = []
        for api_version in self.api_versions.list_api_versions():
            if not api_version.is_deprecated:
                continue
            advanced = self.api_versions.advance(api_version.id, now=now)
            if advanced.version != api_version.version:
                changed_versions.append(api_version.id)

        retired = self.scheduler.retire_completed(self._is_target_removed, now=now)
        return {
            "technologies": changed_technologies,
            "api_versions": changed_versions,
            "retired_notices": [n.id for n in retired],
        }

    def _is_target_removed(self, notice: DeprecationNotice) -> bool:
        if notice.type == NoticeTargetType.TECHNOLOGY:
            entry = self.store.find(notice.target_id)
            return entry is not None and entry.deprecation_status == DeprecationStatus.REMOVED
        api_version = self.api_versions.repository.get(notice.target_id)
        return api_version is not None and api_version.status == ApiLifecycleStatus.REMOVED

    # Snapshots and layout

    def create_snapshot(
        self,
        title: str,
        actor: str = "system",
        publish: bool = False,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run("create_snapshot", self.snapshots.create_snapshot, title, actor=actor, publish=publish, now=now)

    def publish_snapshot(self, snapshot_id: str, now: Optional[datetime] = None) -> OperationResult:
        return self._run("publish_snapshot", self.snapshots.publish_snapshot, snapshot_id, now=now)

    def get_snapshot(self, snapshot_id: str) -> OperationResult:
        return self._run("get_snapshot", self.snapshots.get_snapshot, snapshot_id)

    def list_snapshots(self) -> OperationResult:
        return self._run("list_snapshots", self.snapshots.list_snapshots)

    def latest_published(self) -> OperationResult:
        return self._run("latest_published", self.snapshots.latest_published)

    def layout(
        self,
        snapshot_id: Optional[str] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> OperationResult:
        """Layout a snapshot, defaulting to the latest published one."""
        return self._run("layout", self._layout, snapshot_id, width, height)

    def _layout(self, snapshot_id: Optional[str], width: Optional[int], height: Optional[int]):
        if snapshot_id is not None:
            snapshot = self.snapshots.get_snapshot(snapshot_id)
        else:
            snapshot = self.snapshots.latest_published()
            if snapshot is None:
                raise NotFound("Snapshot", "latest-published")
        return self.layout_engine.layout(snapshot, width, height)

    # Notices

    def compute_schedule(self, now: Optional[datetime] = None) -> OperationResult:
        return self._run("compute_schedule", self.scheduler.compute_schedule, now)

    def get_notice(self, notice_id: str) -> OperationResult:
        return self._run("get_notice", self.scheduler.get_notice, notice_id)

    def list_notices(
        self,
        type: Optional[NoticeTargetType] = None,
        severity: Optional[NoticeSeverity] = None,
        pending: Optional[bool] = None,
        target_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "list_notices", self.scheduler.list_notices,
            type=type, severity=severity, pending=pending, target_id=target_id, now=now,
        )

    def acknowledge_notice(
        self,
        notice_id: str,
        user_id: str,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run("acknowledge_notice", self.scheduler.acknowledge, notice_id, user_id, comments, now)

    def due_reminders(self, now: Optional[datetime] = None) -> OperationResult:
        """Map of notice id -> reminder offsets due and not yet sent."""
        return self._run("due_reminders", self._due_reminders, now or utcnow())

    def _due_reminders(self, now: datetime) -> Dict[str, List[int]]:
        due = {}
        for notice in self.scheduler.list_notices(now=now):
            offsets = self.scheduler.due_reminders(notice, now)
            if offsets:
                due[notice.id] = offsets
        return due

    def mark_reminder_sent(self, notice_id: str, offset: int, now: Optional[datetime] = None) -> OperationResult:
        return self._run("mark_reminder_sent", self.scheduler.mark_reminder_sent, notice_id, offset, now)

    def mark_delivered(self, notice_id: str, target: str, now: Optional[datetime] = None) -> OperationResult:
        return self._run("mark_delivered", self.scheduler.mark_delivered, notice_id, target, now)

    def overdue_notices(self, now: Optional[datetime] = None) -> OperationResult:
        return self._run("overdue_notices", self.scheduler.overdue, now)

    # API versions

    def create_api_version(
        self,
        api_name: str,
        label: str,
        strategy: Union[VersioningStrategy, str],
        actor: str = "system",
        contact_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "create_api_version", self.api_versions.create_api_version,
            api_name, label, strategy, actor=actor, contact_email=contact_email, now=now,
        )

    def get_api_version(self, version_id: str) -> OperationResult:
        return self._run("get_api_version", self.api_versions.get, version_id)

    def promote_api_version(
        self,
        version_id: str,
        status: Union[ApiLifecycleStatus, str],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "promote_api_version", self.api_versions.promote,
            version_id, status, actor=actor, expected_version=expected_version, now=now,
        )

    def deprecate_api_version(
        self,
        version_id: str,
        reason: str,
        actor: str = "system",
        migration_guide: Optional[str] = None,
        breaking_changes: Optional[List[str]] = None,
        replacement_version: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "deprecate_api_version", self.api_versions.deprecate_api_version,
            version_id, reason, actor=actor, migration_guide=migration_guide,
            breaking_changes=breaking_changes, replacement_version=replacement_version,
            expected_version=expected_version, now=now,
        )

    def advance_api_version(self, version_id: str, now: Optional[datetime] = None) -> OperationResult:
        return self._run("advance_api_version", self.api_versions.advance, version_id, now=now)

    def update_api_usage(
        self,
        version_id: str,
        metrics: Union[UsageMetrics, Dict[str, Any]],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OperationResult:
        return self._run(
            "update_api_usage", self.api_versions.update_usage,
            version_id, metrics, actor=actor, expected_version=expected_version, now=now,
        )

    def list_api_versions(
        self,
        api_name: Optional[str] = None,
        status: Optional[ApiLifecycleStatus] = None,
        deprecated: Optional[bool] = None,
        active_only: bool = False,
    ) -> OperationResult:
        return self._run(
            "list_api_versions", self.api_versions.list_api_versions,
            api_name=api_name, status=status, deprecated=deprecated, active_only=active_only,
        )

    def deprecation_timeline(self, api_name: str, now: Optional[datetime] = None) -> OperationResult:
        return self._run("deprecation_timeline", self.api_versions.deprecation_timeline, api_name, now=now)
