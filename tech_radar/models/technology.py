"""
Technology entry models.

A TechnologyEntry is one adopted or considered technology on the radar.
Ring and deprecation status are owned by the transition engine; the
overall assessment score is always derived from the seven sub-scores.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from tech_radar.models.enums import (
    CostImpact,
    DeprecationStatus,
    ExperienceLevel,
    Movement,
    Quadrant,
    RiskLevel,
    Ring,
    StrategicValue,
    TimeToValue,
)
from tech_radar.utils import utcnow


def compute_overall_score(
    maturity: int,
    community: int,
    documentation: int,
    performance: int,
    security: int,
    maintenance: int,
    learning_curve: int,
) -> float:
    """
    Aggregate the seven sub-scores into the overall score.

    Learning curve is "1 = easy, 5 = hard", so it is inverted before
    averaging. The result is the arithmetic mean rounded to one decimal and
    always falls in [1, 5].
    """
    values = [
        maturity,
        community,
        documentation,
        performance,
        security,
        maintenance,
        6 - learning_curve,
    ]
    return round(sum(values) / len(values), 1)


class Assessment(BaseModel):
    """
    Assessment scores on a 1-5 scale.

    Attributes:
        maturity: How mature the technology is
        community: Size and health of the community
        documentation: Quality of documentation
        performance: Runtime performance
        security: Security posture
        maintenance: Maintenance burden (higher is better)
        learning_curve: 1 = easy, 5 = hard
    """
    maturity: int = Field(ge=1, le=5)
    community: int = Field(ge=1, le=5)
    documentation: int = Field(ge=1, le=5)
    performance: int = Field(ge=1, le=5)
    security: int = Field(ge=1, le=5)
    maintenance: int = Field(ge=1, le=5)
    learning_curve: int = Field(ge=1, le=5)

    @computed_field
    @property
    def overall_score(self) -> float:
        return compute_overall_score(
            self.maturity,
            self.community,
            self.documentation,
            self.performance,
            self.security,
            self.maintenance,
            self.learning_curve,
        )


class BusinessImpact(BaseModel):
    strategic_value: StrategicValue = StrategicValue.MEDIUM
    risk_level: RiskLevel = RiskLevel.MEDIUM
    cost_impact: CostImpact = CostImpact.MEDIUM
    time_to_value: TimeToValue = TimeToValue.MEDIUM


class TeamUsage(BaseModel):
    """Usage of the technology by a single team."""
    team: str
    projects: List[str] = Field(default_factory=list)
    adoption_date: datetime = Field(default_factory=utcnow)
    experience: ExperienceLevel = ExperienceLevel.INTERMEDIATE


class StatusTransition(BaseModel):
    """One step of the deprecation state machine."""
    status: DeprecationStatus
    at: datetime


class Deprecation(BaseModel):
    """
    Deprecation sub-record.

    Planned dates are set when the entity is deprecated; the history
    records when each status was actually entered.
    """
    status: DeprecationStatus = DeprecationStatus.ACTIVE
    deprecated_date: Optional[datetime] = None
    sunset_date: Optional[datetime] = None
    removal_date: Optional[datetime] = None
    reason: Optional[str] = None
    migration_path: Optional[str] = None
    replacement_technology: Optional[str] = None
    history: List[StatusTransition] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == DeprecationStatus.ACTIVE


class Rationale(BaseModel):
    """Decision rationale; every list is append-only."""
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    tradeoffs: List[str] = Field(default_factory=list)
    decision_factors: List[str] = Field(default_factory=list)
    key_stakeholders: List[str] = Field(default_factory=list)


class TechnologyEntry(BaseModel):
    """
    A technology on the radar.

    Attributes:
        id: Entity id (assigned by the store)
        name: Display name
        description: Free-text description
        quadrant: Category axis
        ring: Adoption tier (changed only through transitions)
        movement: Direction of the last ring change (derived)
        tags: Free-form tags used for filtering
        adoption_level: Percentage of the organization using it (0-100)
        deprecation: Optional deprecation sub-record
        version: Optimistic concurrency counter, +1 per mutation
    """
    id: str = ""
    name: str
    description: str
    quadrant: Quadrant
    ring: Ring
    movement: Movement = Movement.NO_CHANGE

    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    url: Optional[str] = None

    introduced_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None

    adoption_level: float = 0
    team_usage: List[TeamUsage] = Field(default_factory=list)

    assessment: Assessment
    business_impact: BusinessImpact = Field(default_factory=BusinessImpact)

    dependencies: List[str] = Field(default_factory=list)
    alternatives: List[str] = Field(default_factory=list)
    supersedes: List[str] = Field(default_factory=list)

    deprecation: Optional[Deprecation] = None
    rationale: Rationale = Field(default_factory=Rationale)

    created_by: str = "system"
    created_at: Optional[datetime] = None
    updated_by: str = "system"
    updated_at: Optional[datetime] = None
    version: int = 1

    @property
    def overall_score(self) -> float:
        return self.assessment.overall_score

    @property
    def deprecation_status(self) -> DeprecationStatus:
        """Deprecation status, treating a missing sub-record as active."""
        if self.deprecation is None:
            return DeprecationStatus.ACTIVE
        return self.deprecation.status

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_status != DeprecationStatus.ACTIVE
