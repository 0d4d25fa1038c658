"""
Deprecation notice models.

Notices are generated by the transition engine and the API version
manager, never authored directly. The acknowledgment log is append-only.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from tech_radar.models.enums import (
    MigrationEffort,
    NoticeSeverity,
    NoticeTargetType,
    RecipientChannel,
)
from tech_radar.utils import new_id, utcnow


class Recipient(BaseModel):
    """A single delivery target for a notice."""
    type: RecipientChannel = RecipientChannel.EMAIL
    target: str
    sent: bool = False
    sent_at: Optional[datetime] = None


class MigrationGuidance(BaseModel):
    has_automated_migration: bool = False
    migration_guide: Optional[str] = None
    replacement_technology: Optional[str] = None
    estimated_effort: Optional[MigrationEffort] = None


class Acknowledgment(BaseModel):
    user_id: str
    acknowledged_at: datetime
    comments: Optional[str] = None


class DeprecationNotice(BaseModel):
    """
    Communication artifact describing an entity's wind-down timeline.

    Attributes:
        type: Whether the target is a technology or an API version
        target_id: Id of the deprecated entity
        severity: info, warning or critical
        recipients: Delivery targets with per-recipient sent flag
        reminder_offsets: "Warn N days before removal" offsets
        reminders_sent: Offsets already reminded about
        acknowledgments: Append-only acknowledgment log
        retired: Set once all removal-date-bound actions completed
    """
    id: str = Field(default_factory=new_id)
    type: NoticeTargetType
    target_id: str
    title: str
    message: str
    severity: NoticeSeverity

    notice_date: datetime
    deprecation_date: datetime
    sunset_date: Optional[datetime] = None
    removal_date: Optional[datetime] = None

    recipients: List[Recipient] = Field(default_factory=list)
    migration: Optional[MigrationGuidance] = None
    acknowledgments: List[Acknowledgment] = Field(default_factory=list)

    reminder_offsets: List[int] = Field(default_factory=list)
    reminders_sent: List[int] = Field(default_factory=list)
    retired: bool = False
    retired_at: Optional[datetime] = None

    created_by: str = "system"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_acknowledged(self) -> bool:
        return bool(self.acknowledgments)

    def is_past_removal(self, now: datetime) -> bool:
        return self.removal_date is not None and now >= self.removal_date


class OverdueNotice(BaseModel):
    """Reportable condition: unacknowledged notice past its removal date."""
    notice_id: str
    target_id: str
    type: NoticeTargetType
    removal_date: datetime
    days_overdue: int
