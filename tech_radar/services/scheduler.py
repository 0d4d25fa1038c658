"""
Deprecation scheduler.

Computes the deprecation / sunset / removal dates of a deprecated entity,
assembles deprecation notices, and tracks reminders, acknowledgments and
retirement. Time always comes from the caller, so repeated calls with the
same `now` are idempotent.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import NotFound, SchedulingInconsistency
from tech_radar.models.enums import NoticeSeverity, NoticeTargetType, RecipientChannel
from tech_radar.models.notice import (
    Acknowledgment,
    DeprecationNotice,
    MigrationGuidance,
    OverdueNotice,
    Recipient,
)
from tech_radar.store.base import NoticeRepository
from tech_radar.utils import utcnow

logger = logging.getLogger(__name__)


class DeprecationSchedule(BaseModel):
    """
    Absolute dates for one deprecation.

    Attributes:
        deprecation_date: When the entity was deprecated
        sunset_date: End of full support
        removal_date: When the entity is removed
        reminder_dates: Offset (days before removal) -> reminder date
    """
    deprecation_date: datetime
    sunset_date: datetime
    removal_date: datetime
    reminder_dates: Dict[int, datetime] = Field(default_factory=dict)


class DeprecationScheduler:
    """
    Scheduler for deprecation timelines and notices.

    Periods default to the settings. An inconsistent configuration raises
    SchedulingInconsistency at construction time.
    """

    def __init__(
        self,
        notices: NoticeRepository,
        settings: Optional[Settings] = None,
        sunset_period_days: Optional[int] = None,
        removal_period_days: Optional[int] = None,
        notification_periods: Optional[List[int]] = None,
    ):
        self.notices = notices
        self.settings = settings or get_settings()
        self.sunset_period_days = (
            sunset_period_days if sunset_period_days is not None else self.settings.sunset_period_days
        )
        self.removal_period_days = (
            removal_period_days if removal_period_days is not None else self.settings.removal_period_days
        )
        self.notification_periods = sorted(
            notification_periods if notification_periods is not None else self.settings.notification_periods,
            reverse=True,
        )
        self._check_configuration()

    def _check_configuration(self) -> None:
        problems = []
        if self.sunset_period_days <= 0:
            problems.append(f"sunset period must be positive (got {self.sunset_period_days})")
        if self.removal_period_days <= self.sunset_period_days:
            problems.append(
                f"removal period ({self.removal_period_days}) must exceed "
                f"sunset period ({self.sunset_period_days})"
            )
        bad_offsets = [p for p in self.notification_periods if p <= 0]
        if bad_offsets:
            problems.append(f"reminder offsets must be positive (got {bad_offsets})")
        if problems:
            logger.error(f"Invalid deprecation schedule configuration: {problems}")
            raise SchedulingInconsistency(
                "Invalid deprecation schedule: " + "; ".join(problems),
                details={
                    "sunset_period_days": self.sunset_period_days,
                    "removal_period_days": self.removal_period_days,
                    "notification_periods": list(self.notification_periods),
                },
            )

    def compute_schedule(self, now: Optional[datetime] = None) -> DeprecationSchedule:
        now = now or utcnow()
        removal = now + timedelta(days=self.removal_period_days)
        return DeprecationSchedule(
            deprecation_date=now,
            sunset_date=now + timedelta(days=self.sunset_period_days),
            removal_date=removal,
            reminder_dates={
                offset: removal - timedelta(days=offset)
                for offset in self.notification_periods
            },
        )

    def build_recipients(
        self,
        addresses: Iterable[str] = (),
        teams: Iterable[str] = (),
        include_configured: bool = True,
    ) -> List[Recipient]:
        """
        Build a de-duplicated email recipient list.

        Configured deprecation-warning addresses come first, then explicit
        addresses, then one `<team>@<team_email_domain>` per team.
        """
        targets: List[str] = []
        if include_configured:
            targets.extend(self.settings.deprecation_warning_recipients)
        targets.extend(a for a in addresses if a)
        targets.extend(f"{team}@{self.settings.team_email_domain}" for team in teams)

        seen = set()
        recipients = []
        for target in targets:
            if target in seen:
                continue
            seen.add(target)
            recipients.append(Recipient(type=RecipientChannel.EMAIL, target=target))
        return recipients

    def build_notice(
        self,
        type: NoticeTargetType,
        target_id: str,
        title: str,
        message: str,
        severity: NoticeSeverity,
        now: datetime,
        schedule: Optional[DeprecationSchedule] = None,
        recipients: Optional[List[Recipient]] = None,
        migration: Optional[MigrationGuidance] = None,
        actor: str = "system",
    ) -> DeprecationNotice:
        """
        Assemble a notice. Without a schedule the notice is advisory: it
        carries no sunset/removal dates and no reminders.
        """
        return DeprecationNotice(
            type=type,
            target_id=target_id,
            title=title,
            message=message,
            severity=severity,
            notice_date=now,
            deprecation_date=schedule.deprecation_date if schedule else now,
            sunset_date=schedule.sunset_date if schedule else None,
            removal_date=schedule.removal_date if schedule else None,
            recipients=recipients or [],
            migration=migration,
            reminder_offsets=list(self.notification_periods) if schedule else [],
            created_by=actor,
            created_at=now,
            updated_at=now,
        )

    def issue(self, notice: DeprecationNotice) -> DeprecationNotice:
        """Store a freshly built notice."""
        stored = self.notices.add(notice)
        logger.info(
            f"Issued {notice.severity.value} notice: {notice.title}",
            extra={"notice_id": notice.id, "target_id": notice.target_id},
        )
        return stored

    def withdraw(self, notice: DeprecationNotice) -> None:
        """Remove a notice whose lifecycle change failed to commit."""
        if self.notices.delete(notice.id):
            logger.warning(
                f"Withdrew notice: {notice.title}",
                extra={"notice_id": notice.id, "target_id": notice.target_id},
            )

    def get_notice(self, notice_id: str) -> DeprecationNotice:
        notice = self.notices.get(notice_id)
        if notice is None:
            raise NotFound("Deprecation notice", notice_id)
        return notice

    def list_notices(
        self,
        type: Optional[NoticeTargetType] = None,
        severity: Optional[NoticeSeverity] = None,
        pending: Optional[bool] = None,
        target_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[DeprecationNotice]:
        """
        List notices.

        Args:
            type: Only notices about this kind of target
            severity: Only notices with this severity
            pending: True keeps notices whose removal date is still ahead
                (or unset); False keeps the ones past removal
            target_id: Only notices about this entity
        """
        now = now or utcnow()
        notices = []
        for notice in self.notices.list():
            if type is not None and notice.type != type:
                continue
            if severity is not None and notice.severity != severity:
                continue
            if target_id is not None and notice.target_id != target_id:
                continue
            if pending is not None and pending == notice.is_past_removal(now):
                continue
            notices.append(notice)
        return notices

    def due_reminders(self, notice: DeprecationNotice, now: Optional[datetime] = None) -> List[int]:
        """Offsets whose reminder date has passed and that were not yet sent."""
        now = now or utcnow()
        if notice.retired or notice.removal_date is None:
            return []
        return [
            offset for offset in notice.reminder_offsets
            if offset not in notice.reminders_sent
            and now >= notice.removal_date - timedelta(days=offset)
        ]

    def mark_reminder_sent(
        self,
        notice_id: str,
        offset: int,
        now: Optional[datetime] = None,
    ) -> DeprecationNotice:
        now = now or utcnow()
        notice = self.get_notice(notice_id)
        if offset in notice.reminders_sent:
            return notice
        notice = notice.model_copy(update={
            "reminders_sent": notice.reminders_sent + [offset],
            "updated_at": now,
        })
        return self.notices.save(notice)

    def mark_delivered(
        self,
        notice_id: str,
        target: str,
        now: Optional[datetime] = None,
    ) -> DeprecationNotice:
        """Flag a recipient as sent; reported by the delivery collaborator."""
        now = now or utcnow()
        notice = self.get_notice(notice_id)
        recipients = []
        found = False
        for recipient in notice.recipients:
            if recipient.target == target:
                found = True
                if not recipient.sent:
                    recipient = recipient.model_copy(update={"sent": True, "sent_at": now})
            recipients.append(recipient)
        if not found:
            raise NotFound("Recipient", target)
        return self.notices.save(notice.model_copy(update={"recipients": recipients, "updated_at": now}))

    def acknowledge(
        self,
        notice_id: str,
        user_id: str,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> DeprecationNotice:
        """Append an acknowledgment to the notice's log."""
        now = now or utcnow()
        notice = self.get_notice(notice_id)
        acknowledgment = Acknowledgment(user_id=user_id, acknowledged_at=now, comments=comments)
        notice = notice.model_copy(update={
            "acknowledgments": notice.acknowledgments + [acknowledgment],
            "updated_at": now,
        })
        logger.info(f"Notice {notice_id} acknowledged by {user_id}")
        return self.notices.save(notice)

    def overdue(self, now: Optional[datetime] = None) -> List[OverdueNotice]:
        """Unacknowledged, unretired notices whose removal date has passed."""
        now = now or utcnow()
        report = []
        for notice in self.notices.list():
            if notice.retired or notice.is_acknowledged or not notice.is_past_removal(now):
                continue
            report.append(OverdueNotice(
                notice_id=notice.id,
                target_id=notice.target_id,
                type=notice.type,
                removal_date=notice.removal_date,
                days_overdue=(now - notice.removal_date).days,
            ))
        if report:
            logger.warning(f"{len(report)} deprecation notice(s) overdue")
        return report

    def retire_completed(
        self,
        is_target_removed: Callable[[DeprecationNotice], bool],
        now: Optional[datetime] = None,
    ) -> List[DeprecationNotice]:
        """
        Retire notices whose target reached `removed` and whose removal
        date (if any) has passed.

        Args:
            is_target_removed: Predicate resolving the notice's target status
        """
        now = now or utcnow()
        retired = []
        for notice in self.notices.list():
            if notice.retired:
                continue
            if notice.removal_date is not None and not notice.is_past_removal(now):
                continue
            if not is_target_removed(notice):
                continue
            notice = notice.model_copy(update={"retired": True, "retired_at": now, "updated_at": now})
            retired.append(self.notices.save(notice))
        if retired:
            logger.info(f"Retired {len(retired)} deprecation notice(s)")
        return retired
