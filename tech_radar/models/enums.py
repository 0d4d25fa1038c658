"""
Enumerations shared by the radar models.

Rings are ordered by adoption confidence:
    hold < assess < trial < adopt
"""

from enum import Enum


class Quadrant(str, Enum):
    """Category axis of the radar."""
    LANGUAGES_FRAMEWORKS = "languages-frameworks"
    TOOLS = "tools"
    PLATFORMS = "platforms"
    TECHNIQUES = "techniques"


class Ring(str, Enum):
    """Adoption-confidence tier."""
    ADOPT = "adopt"
    TRIAL = "trial"
    ASSESS = "assess"
    HOLD = "hold"

    @property
    def rank(self) -> int:
        """Adoption rank used for movement computation (hold=0 ... adopt=3)."""
        return RING_ORDER[self]


RING_ORDER = {
    Ring.HOLD: 0,
    Ring.ASSESS: 1,
    Ring.TRIAL: 2,
    Ring.ADOPT: 3,
}


class Movement(str, Enum):
    """Direction of the last ring change."""
    IN = "in"
    OUT = "out"
    NO_CHANGE = "no-change"


class DeprecationStatus(str, Enum):
    """Deprecation lifecycle: active -> deprecated -> sunset -> removed."""
    ACTIVE = "active"
    DEPRECATED = "deprecated"
    SUNSET = "sunset"
    REMOVED = "removed"


DEPRECATION_ORDER = [
    DeprecationStatus.ACTIVE,
    DeprecationStatus.DEPRECATED,
    DeprecationStatus.SUNSET,
    DeprecationStatus.REMOVED,
]


class StatusFilter(str, Enum):
    """Status filter accepted by the entry listing."""
    ACTIVE = "active"
    DEPRECATED = "deprecated"
    ALL = "all"


class StrategicValue(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CostImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimeToValue(str, Enum):
    IMMEDIATE = "immediate"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class RationaleField(str, Enum):
    """Append-only rationale lists of a technology entry."""
    PROS = "pros"
    CONS = "cons"
    TRADEOFFS = "tradeoffs"
    DECISION_FACTORS = "decision_factors"
    KEY_STAKEHOLDERS = "key_stakeholders"


class ReviewCycle(str, Enum):
    """Review cadence used to compute the next review date."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    ANNUAL = "annual"


REVIEW_CYCLE_DAYS = {
    ReviewCycle.MONTHLY: 30,
    ReviewCycle.QUARTERLY: 90,
    ReviewCycle.BIANNUAL: 180,
    ReviewCycle.ANNUAL: 365,
}


class VersioningStrategy(str, Enum):
    SEMANTIC = "semantic"
    DATE_BASED = "date-based"
    SEQUENTIAL = "sequential"
    HEADER_BASED = "header-based"


class ApiLifecycleStatus(str, Enum):
    """Lifecycle of an API version."""
    DEVELOPMENT = "development"
    BETA = "beta"
    STABLE = "stable"
    DEPRECATED = "deprecated"
    SUNSET = "sunset"
    REMOVED = "removed"


API_LIFECYCLE_ORDER = [
    ApiLifecycleStatus.DEVELOPMENT,
    ApiLifecycleStatus.BETA,
    ApiLifecycleStatus.STABLE,
    ApiLifecycleStatus.DEPRECATED,
    ApiLifecycleStatus.SUNSET,
    ApiLifecycleStatus.REMOVED,
]


class SupportLevel(str, Enum):
    FULL = "full"
    MAINTENANCE = "maintenance"
    SECURITY_ONLY = "security-only"
    NONE = "none"


class NoticeTargetType(str, Enum):
    TECHNOLOGY = "technology"
    API_VERSION = "api-version"


class NoticeSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class RecipientChannel(str, Enum):
    EMAIL = "email"
    SLACK = "slack"
    WEBHOOK = "webhook"


class MigrationEffort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LayoutMode(str, Enum):
    """Placement mode of the layout engine."""
    RANDOM = "random"      # fresh coordinates on every call
    SEEDED = "seeded"      # reproducible, seeded from the entry id
