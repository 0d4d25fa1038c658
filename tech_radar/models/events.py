"""
Domain events published by the engines.

Side effects that belong to other subsystems (incident management,
notification delivery) are driven by these events instead of direct
calls.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from tech_radar.models.enums import Movement, Ring, StrategicValue
from tech_radar.utils import utcnow


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: str
    occurred_at: datetime = Field(default_factory=utcnow)


class TechnologyAdded(DomainEvent):
    event_type: str = "technology_added"
    technology_id: str
    ring: Ring


class TechnologyMoved(DomainEvent):
    event_type: str = "technology_moved"
    technology_id: str
    from_ring: Ring
    to_ring: Ring
    movement: Movement
    moved_by: str


class TechnologyDeprecated(DomainEvent):
    """
    A technology entered the hold ring or was explicitly deprecated.

    Consumed by the incident handler, which opens an incident when the
    strategic value is high or critical.
    """
    event_type: str = "technology_deprecated"
    technology_id: str
    name: str
    strategic_value: StrategicValue
    reason: str
    adoption_level: float = 0


class ApiVersionDeprecated(DomainEvent):
    event_type: str = "api_version_deprecated"
    api_version_id: str
    api_name: str
    label: str
    sunset_date: Optional[datetime] = None


class RadarPublished(DomainEvent):
    event_type: str = "radar_published"
    snapshot_id: str
    version: str
