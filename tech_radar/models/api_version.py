"""
API version models.

An ApiVersion is a versioned API surface with its own lifecycle:

    development -> beta -> stable -> deprecated -> sunset -> removed
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from tech_radar.models.enums import (
    ApiLifecycleStatus,
    SupportLevel,
    VersioningStrategy,
)
from tech_radar.models.technology import StatusTransition


class UsageMetrics(BaseModel):
    """
    Usage metrics of an API version.

    Attributes:
        active_clients: Number of distinct clients seen recently
        requests_per_day: Mean daily request count
        error_rate: Fraction of failed requests (0-1)
        average_response_time_ms: Mean latency in milliseconds
        last_used: When metrics were last reported
    """
    active_clients: int = 0
    requests_per_day: int = 0
    error_rate: float = 0.0
    average_response_time_ms: float = 0.0
    last_used: Optional[datetime] = None


class ApiDeprecation(BaseModel):
    """Deprecation timeline of an API version."""
    deprecated_date: Optional[datetime] = None
    sunset_date: Optional[datetime] = None
    removal_date: Optional[datetime] = None
    reason: Optional[str] = None
    migration_path: Optional[str] = None
    replacement_version: Optional[str] = None
    breaking_changes: List[str] = Field(default_factory=list)
    history: List[StatusTransition] = Field(default_factory=list)


class Compatibility(BaseModel):
    backward_compatible: bool = True
    forward_compatible: bool = False
    supported_clients: List[str] = Field(default_factory=list)
    minimum_client_version: Optional[str] = None


class SupportInfo(BaseModel):
    support_level: SupportLevel = SupportLevel.FULL
    support_end_date: Optional[datetime] = None
    contact_email: Optional[str] = None
    slack_channel: Optional[str] = None


class ApiVersion(BaseModel):
    """
    A versioned API surface.

    `label` is the human version string ("2.1.0", "2024.01.15", "v3");
    `version` is the optimistic concurrency counter shared with every
    stored entity.
    """
    id: str = ""
    api_name: str
    label: str
    versioning_strategy: VersioningStrategy
    major_version: int
    minor_version: int
    patch_version: Optional[int] = None

    status: ApiLifecycleStatus = ApiLifecycleStatus.DEVELOPMENT
    release_date: Optional[datetime] = None

    usage: UsageMetrics = Field(default_factory=UsageMetrics)
    deprecation: Optional[ApiDeprecation] = None
    compatibility: Compatibility = Field(default_factory=Compatibility)
    support: SupportInfo = Field(default_factory=SupportInfo)

    created_by: str = "system"
    created_at: Optional[datetime] = None
    updated_by: str = "system"
    updated_at: Optional[datetime] = None
    version: int = 1

    @property
    def is_deprecated(self) -> bool:
        return self.status in (
            ApiLifecycleStatus.DEPRECATED,
            ApiLifecycleStatus.SUNSET,
            ApiLifecycleStatus.REMOVED,
        )


class TimelineEntry(BaseModel):
    label: str
    status: ApiLifecycleStatus
    deprecation_date: Optional[datetime] = None
    sunset_date: Optional[datetime] = None
    removal_date: Optional[datetime] = None
    active_clients: int = 0


class DeprecationTimeline(BaseModel):
    """Per-version wind-down dates of one API plus recommendations."""
    api_name: str
    versions: List[TimelineEntry] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
