"""
API version manager.

Lifecycle of versioned API surfaces:

    development -> beta -> stable -> deprecated -> sunset -> removed

Labels are parsed according to the versioning strategy:

    semantic      MAJOR.MINOR.PATCH[-pre][+build]
    date-based    YYYY.MM.DD
    sequential    v?N            (minor 0)
    header-based  MAJOR.MINOR
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, NamedTuple, Optional, Union

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, NotFound, ValidationError
from tech_radar.events.bus import EventBus
from tech_radar.models.api_version import (
    ApiDeprecation,
    ApiVersion,
    DeprecationTimeline,
    SupportInfo,
    TimelineEntry,
    UsageMetrics,
)
from tech_radar.models.enums import (
    API_LIFECYCLE_ORDER,
    ApiLifecycleStatus,
    DeprecationStatus,
    MigrationEffort,
    NoticeSeverity,
    NoticeTargetType,
    SupportLevel,
    VersioningStrategy,
)
from tech_radar.models.events import ApiVersionDeprecated
from tech_radar.models.notice import DeprecationNotice, MigrationGuidance
from tech_radar.models.technology import StatusTransition
from tech_radar.services.scheduler import DeprecationScheduler
from tech_radar.store.base import EntryRepository
from tech_radar.utils import new_id, utcnow
from tech_radar.validation import coerce_enum, validate_api_version

logger = logging.getLogger(__name__)

SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
DATE_PATTERN = re.compile(r"^(\d{4})\.(\d{2})\.(\d{2})$")
SEQUENTIAL_PATTERN = re.compile(r"^v?(\d+)$")
HEADER_PATTERN = re.compile(r"^(\d+)\.(\d+)$")

PROMOTABLE_STATUSES = (
    ApiLifecycleStatus.DEVELOPMENT,
    ApiLifecycleStatus.BETA,
    ApiLifecycleStatus.STABLE,
)

CRITICAL_CLIENT_THRESHOLD = 100
WARNING_CLIENT_THRESHOLD = 10
CONSOLIDATION_THRESHOLD = 3
OLD_VERSION_DAYS = 730


class ParsedVersion(NamedTuple):
    major: int
    minor: int
    patch: Optional[int] = None
    prerelease: Optional[str] = None


def _invalid(label: str, reason: str) -> ValidationError:
    return ValidationError(
        [f"Invalid version format '{label}': {reason}"],
        details={"reason": "INVALID_VERSION_FORMAT"},
    )


def parse_version(label: str, strategy: Union[VersioningStrategy, str]) -> ParsedVersion:
    """
    Parse a version label.

    Raises:
        ValidationError: label does not match the strategy
    """
    strategy = coerce_enum(VersioningStrategy, strategy, "versioning strategy")

    if strategy == VersioningStrategy.SEMANTIC:
        match = SEMVER_PATTERN.match(label)
        if not match:
            raise _invalid(label, "expected semantic version MAJOR.MINOR.PATCH")
        return ParsedVersion(int(match.group(1)), int(match.group(2)), int(match.group(3)), match.group(4))

    if strategy == VersioningStrategy.DATE_BASED:
        match = DATE_PATTERN.match(label)
        if not match:
            raise _invalid(label, "expected date-based version YYYY.MM.DD")
        year, month, day = (int(g) for g in match.groups())
        try:
            datetime(year, month, day)
        except ValueError:
            raise _invalid(label, "not a calendar date")
        return ParsedVersion(year, month, day)

    if strategy == VersioningStrategy.SEQUENTIAL:
        match = SEQUENTIAL_PATTERN.match(label)
        if not match:
            raise _invalid(label, "expected sequential version vN")
        return ParsedVersion(int(match.group(1)), 0)

    match = HEADER_PATTERN.match(label)
    if not match:
        raise _invalid(label, "expected header-based version MAJOR.MINOR")
    return ParsedVersion(int(match.group(1)), int(match.group(2)))


def version_order_key(api_version: ApiVersion):
    """Sort key: numeric parts, then pre-releases before releases."""
    prerelease = None
    if api_version.versioning_strategy == VersioningStrategy.SEMANTIC:
        match = SEMVER_PATTERN.match(api_version.label)
        prerelease = match.group(4) if match else None
    return (
        api_version.major_version,
        api_version.minor_version,
        api_version.patch_version or 0,
        0 if prerelease else 1,
        prerelease or "",
    )


def deprecation_severity(active_clients: int) -> NoticeSeverity:
    if active_clients > CRITICAL_CLIENT_THRESHOLD:
        return NoticeSeverity.CRITICAL
    if active_clients > WARNING_CLIENT_THRESHOLD:
        return NoticeSeverity.WARNING
    return NoticeSeverity.INFO


def migration_effort(breaking_changes: List[str]) -> MigrationEffort:
    if not breaking_changes:
        return MigrationEffort.LOW
    if len(breaking_changes) <= 3:
        return MigrationEffort.MEDIUM
    return MigrationEffort.HIGH


class ApiVersionManager:
    """
    Manages API versions through their lifecycle.

    Args:
        repository: Storage for API versions
        scheduler: Deprecation scheduler issuing notices
        bus: Event bus receiving ApiVersionDeprecated
        settings: Settings override
    """

    def __init__(
        self,
        repository: EntryRepository[ApiVersion],
        scheduler: DeprecationScheduler,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.scheduler = scheduler
        self.bus = bus
        self.settings = settings or get_settings()

    def get(self, version_id: str) -> ApiVersion:
        api_version = self.repository.get(version_id)
        if api_version is None:
            raise NotFound("API version", version_id)
        return api_version

    def _load_for_update(self, version_id: str, expected_version: Optional[int]) -> ApiVersion:
        api_version = self.get(version_id)
        if expected_version is not None and api_version.version != expected_version:
            raise Conflict(
                f"API version {version_id} was modified concurrently",
                entity_id=version_id,
                expected_version=expected_version,
                actual_version=api_version.version,
            )
        return api_version

    def _commit(self, api_version: ApiVersion, expected_version: int, actor: str, now: datetime) -> ApiVersion:
        updated = api_version.model_copy(update={
            "version": expected_version + 1,
            "updated_by": actor,
            "updated_at": now,
        })
        return self.repository.compare_and_swap(updated, expected_version)

    def create_api_version(
        self,
        api_name: str,
        label: str,
        strategy: Union[VersioningStrategy, str],
        actor: str = "system",
        contact_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ApiVersion:
        """
        Register a new API version in development status.

        Raises:
            ValidationError: invalid label or required field missing
            Conflict: the same api_name/label already exists
        """
        now = now or utcnow()
        strategy = coerce_enum(VersioningStrategy, strategy, "versioning strategy")
        parsed = parse_version(label, strategy)

        api_version = ApiVersion(
            id=new_id(),
            api_name=api_name,
            label=label,
            versioning_strategy=strategy,
            major_version=parsed.major,
            minor_version=parsed.minor,
            patch_version=parsed.patch,
            status=ApiLifecycleStatus.DEVELOPMENT,
            release_date=now,
            support=SupportInfo(contact_email=contact_email),
            created_by=actor,
            created_at=now,
            updated_by=actor,
            updated_at=now,
        )
        result = validate_api_version(api_version)
        if not result.valid:
            raise ValidationError(result.errors)

        for existing in self.repository.list():
            if existing.api_name == api_name and existing.label == label:
                raise Conflict(f"API {api_name} version {label} already exists", entity_id=existing.id)

        stored = self.repository.put(api_version)
        logger.info(f"Created API version {api_name} {label}", extra={"api_version_id": stored.id})
        return stored

    def promote(
        self,
        version_id: str,
        status: Union[ApiLifecycleStatus, str],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ApiVersion:
        """
        Move an API version forward through development, beta and stable.

        Raises:
            Conflict: backward move, or a target outside development..stable
        """
        now = now or utcnow()
        status = coerce_enum(ApiLifecycleStatus, status, "status")
        api_version = self._load_for_update(version_id, expected_version)

        if status not in PROMOTABLE_STATUSES or api_version.status not in PROMOTABLE_STATUSES:
            raise Conflict(
                f"Cannot promote API version from {api_version.status.value} to {status.value}",
                entity_id=version_id,
            )
        if API_LIFECYCLE_ORDER.index(status) <= API_LIFECYCLE_ORDER.index(api_version.status):
            raise Conflict(
                f"API version is already {api_version.status.value}; promotion to {status.value} is not forward",
                entity_id=version_id,
            )

        update: Dict[str, Any] = {"status": status}
        if status == ApiLifecycleStatus.STABLE:
            update["release_date"] = now
        committed = self._commit(api_version.model_copy(update=update), api_version.version, actor, now)
        logger.info(f"Promoted {committed.api_name} {committed.label} to {status.value}")
        return committed

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
    ) -> DeprecationNotice:
        """
        Deprecate an API version and issue its notice.

        Support drops to maintenance until the sunset date. Notice severity
        follows the number of active clients; migration effort follows the
        number of breaking changes.

        Raises:
            NotFound: unknown id
            Conflict: already deprecated, or stale expected_version
        """
        now = now or utcnow()
        breaking_changes = list(breaking_changes or [])
        api_version = self._load_for_update(version_id, expected_version)
        if api_version.is_deprecated:
            raise Conflict(
                f"API {api_version.api_name} version {api_version.label} is already {api_version.status.value}",
                entity_id=version_id,
            )

        schedule = self.scheduler.compute_schedule(now)
        deprecated = api_version.model_copy(update={
            "status": ApiLifecycleStatus.DEPRECATED,
            "deprecation": ApiDeprecation(
                deprecated_date=schedule.deprecation_date,
                sunset_date=schedule.sunset_date,
                removal_date=schedule.removal_date,
                reason=reason,
                migration_path=migration_guide,
                replacement_version=replacement_version,
                breaking_changes=breaking_changes,
                history=[StatusTransition(status=DeprecationStatus.DEPRECATED, at=now)],
            ),
            "support": api_version.support.model_copy(update={
                "support_level": SupportLevel.MAINTENANCE,
                "support_end_date": schedule.sunset_date,
            }),
        })

        migration = None
        if migration_guide:
            migration = MigrationGuidance(
                has_automated_migration=False,
                migration_guide=migration_guide,
                replacement_technology=replacement_version,
                estimated_effort=migration_effort(breaking_changes),
            )
        contact = [api_version.support.contact_email] if api_version.support.contact_email else []
        notice = self.scheduler.build_notice(
            type=NoticeTargetType.API_VERSION,
            target_id=api_version.id,
            title=f"API Deprecation: {api_version.api_name} v{api_version.label}",
            message=f"API version {api_version.label} of {api_version.api_name} has been deprecated. {reason}",
            severity=deprecation_severity(api_version.usage.active_clients),
            now=now,
            schedule=schedule,
            recipients=self.scheduler.build_recipients(addresses=contact),
            migration=migration,
            actor=actor,
        )
        self.scheduler.issue(notice)
        try:
            committed = self._commit(deprecated, api_version.version, actor, now)
        except Exception:
            self.scheduler.withdraw(notice)
            raise

        logger.info(
            f"Deprecated API {committed.api_name} version {committed.label}",
            extra={"api_version_id": committed.id, "active_clients": committed.usage.active_clients},
        )

        if self.bus is not None:
            self.bus.publish(ApiVersionDeprecated(
                api_version_id=committed.id,
                api_name=committed.api_name,
                label=committed.label,
                sunset_date=schedule.sunset_date,
                occurred_at=now,
            ))

        return notice

    def advance(self, version_id: str, now: Optional[datetime] = None, actor: str = "system") -> ApiVersion:
        """Apply due deprecated -> sunset -> removed steps; idempotent per `now`."""
        now = now or utcnow()
        api_version = self.get(version_id)
        deprecation = api_version.deprecation
        if deprecation is None or not api_version.is_deprecated:
            return api_version

        status = api_version.status
        history = list(deprecation.history)
        support = api_version.support
        if status == ApiLifecycleStatus.DEPRECATED and deprecation.sunset_date and now >= deprecation.sunset_date:
            status = ApiLifecycleStatus.SUNSET
            support = support.model_copy(update={"support_level": SupportLevel.SECURITY_ONLY})
            history.append(StatusTransition(status=DeprecationStatus(status.value), at=now))
        if status == ApiLifecycleStatus.SUNSET and deprecation.removal_date and now >= deprecation.removal_date:
            status = ApiLifecycleStatus.REMOVED
            support = support.model_copy(update={"support_level": SupportLevel.NONE})
            history.append(StatusTransition(status=DeprecationStatus(status.value), at=now))

        if status == api_version.status:
            return api_version

        advanced = api_version.model_copy(update={
            "status": status,
            "support": support,
            "deprecation": deprecation.model_copy(update={"history": history}),
        })
        committed = self._commit(advanced, api_version.version, actor, now)
        logger.info(f"Advanced {committed.api_name} {committed.label} to {status.value}")
        return committed

    def update_usage(
        self,
        version_id: str,
        metrics: Union[UsageMetrics, Dict[str, Any]],
        actor: str = "system",
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ApiVersion:
        """Replace usage metrics (partial dicts are merged) and stamp last_used."""
        now = now or utcnow()
        api_version = self._load_for_update(version_id, expected_version)
        if isinstance(metrics, UsageMetrics):
            metrics = metrics.model_dump(exclude_unset=True)
        usage = UsageMetrics.model_validate({
            **api_version.usage.model_dump(),
            **metrics,
            "last_used": now,
        })
        updated = api_version.model_copy(update={"usage": usage})
        result = validate_api_version(updated)
        if not result.valid:
            raise ValidationError(result.errors)
        return self._commit(updated, api_version.version, actor, now)

    def list_api_versions(
        self,
        api_name: Optional[str] = None,
        status: Optional[ApiLifecycleStatus] = None,
        deprecated: Optional[bool] = None,
        active_only: bool = False,
    ) -> List[ApiVersion]:
        """
        List API versions sorted by API name, then version order.

        Args:
            api_name: Only versions of this API
            status: Only versions in this status
            deprecated: True keeps status deprecated, False drops it
            active_only: Only versions with active clients
        """
        versions = []
        for api_version in self.repository.list():
            if api_name is not None and api_version.api_name != api_name:
                continue
            if status is not None and api_version.status != status:
                continue
            if deprecated is not None and deprecated != (api_version.status == ApiLifecycleStatus.DEPRECATED):
                continue
            if active_only and api_version.usage.active_clients <= 0:
                continue
            versions.append(api_version)
        versions.sort(key=lambda v: (v.api_name, version_order_key(v)))
        return versions

    def deprecation_timeline(self, api_name: str, now: Optional[datetime] = None) -> DeprecationTimeline:
        now = now or utcnow()
        versions = self.list_api_versions(api_name=api_name)
        entries = [
            TimelineEntry(
                label=v.label,
                status=v.status,
                deprecation_date=v.deprecation.deprecated_date if v.deprecation else None,
                sunset_date=v.deprecation.sunset_date if v.deprecation else None,
                removal_date=v.deprecation.removal_date if v.deprecation else None,
                active_clients=v.usage.active_clients,
            )
            for v in versions
        ]
        return DeprecationTimeline(
            api_name=api_name,
            versions=entries,
            recommendations=self.recommendations(versions, now),
        )

    def recommendations(self, versions: List[ApiVersion], now: datetime) -> List[str]:
        recommendations = []
        deprecated = [v for v in versions if v.status == ApiLifecycleStatus.DEPRECATED]
        with_clients = [v for v in versions if v.usage.active_clients > 0]

        if deprecated:
            recommendations.append(f"{len(deprecated)} version(s) are deprecated and should be migrated")
        if len(with_clients) > CONSOLIDATION_THRESHOLD:
            recommendations.append("Consider consolidating API versions to reduce maintenance overhead")

        cutoff = now - timedelta(days=OLD_VERSION_DAYS)
        old = [v for v in with_clients if v.release_date is not None and v.release_date < cutoff]
        if old:
            recommendations.append(
                f"{len(old)} version(s) are over 2 years old and should be evaluated for deprecation"
            )
        return recommendations
