"""
Models package for the tech radar.

Contains Pydantic models for:
- enums: Rings, quadrants, lifecycle states
- technology: Technology entries
- api_version: Versioned API surfaces
- notice: Deprecation notices
- snapshot: Radar snapshots and diffs
- layout: Layout engine output
- results: Structured operation results
- events: Domain events
"""

from tech_radar.models.enums import (
    ApiLifecycleStatus,
    DeprecationStatus,
    LayoutMode,
    Movement,
    NoticeSeverity,
    NoticeTargetType,
    Quadrant,
    RationaleField,
    ReviewCycle,
    Ring,
    StatusFilter,
    StrategicValue,
    VersioningStrategy,
)
from tech_radar.models.technology import (
    Assessment,
    BusinessImpact,
    Deprecation,
    Rationale,
    TeamUsage,
    TechnologyEntry,
    compute_overall_score,
)
from tech_radar.models.api_version import ApiVersion, DeprecationTimeline, TimelineEntry, UsageMetrics
from tech_radar.models.notice import (
    Acknowledgment,
    DeprecationNotice,
    OverdueNotice,
    Recipient,
)
from tech_radar.models.snapshot import (
    RadarSnapshot,
    RingMove,
    SnapshotChanges,
    SnapshotSummary,
)
from tech_radar.models.layout import PlacedTechnology, RadarLayout, RingLegend
from tech_radar.models.results import (
    ErrorCode,
    ErrorInfo,
    OperationResult,
    ResultStatus,
    ValidationResult,
)
from tech_radar.models.events import (
    ApiVersionDeprecated,
    DomainEvent,
    RadarPublished,
    TechnologyAdded,
    TechnologyDeprecated,
    TechnologyMoved,
)

__all__ = [
    # Enums
    "ApiLifecycleStatus",
    "DeprecationStatus",
    "LayoutMode",
    "Movement",
    "NoticeSeverity",
    "NoticeTargetType",
    "Quadrant",
    "RationaleField",
    "ReviewCycle",
    "Ring",
    "StatusFilter",
    "StrategicValue",
    "VersioningStrategy",
    # Technology
    "Assessment",
    "BusinessImpact",
    "Deprecation",
    "Rationale",
    "TeamUsage",
    "TechnologyEntry",
    "compute_overall_score",
    # API versions
    "ApiVersion",
    "DeprecationTimeline",
    "TimelineEntry",
    "UsageMetrics",
    # Notices
    "Acknowledgment",
    "DeprecationNotice",
    "OverdueNotice",
    "Recipient",
    # Snapshots
    "RadarSnapshot",
    "RingMove",
    "SnapshotChanges",
    "SnapshotSummary",
    # Layout
    "PlacedTechnology",
    "RadarLayout",
    "RingLegend",
    # Results
    "ErrorCode",
    "ErrorInfo",
    "OperationResult",
    "ResultStatus",
    "ValidationResult",
    # Events
    "ApiVersionDeprecated",
    "DomainEvent",
    "RadarPublished",
    "TechnologyAdded",
    "TechnologyDeprecated",
    "TechnologyMoved",
]
