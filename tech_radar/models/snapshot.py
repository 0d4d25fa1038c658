"""
Radar snapshot models.

A snapshot is an immutable, dated copy of the full technology set. It can
be published once; the latest published snapshot is the diff baseline
for the next one.
"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from tech_radar.models.enums import Ring
from tech_radar.models.technology import TechnologyEntry
from tech_radar.utils import new_id


class RingMove(BaseModel):
    """A ring change between the baseline and the new snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    technology_id: str
    from_ring: Ring = Field(alias="from")
    to_ring: Ring = Field(alias="to")


class SnapshotChanges(BaseModel):
    added: List[str] = Field(default_factory=list)
    moved: List[RingMove] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    updated: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.moved or self.removed or self.updated)


class SnapshotSummary(BaseModel):
    total_technologies: int = 0
    by_quadrant: Dict[str, int] = Field(default_factory=dict)
    by_ring: Dict[str, int] = Field(default_factory=dict)
    new_technologies: int = 0
    deprecated_technologies: int = 0


class RadarSnapshot(BaseModel):
    """
    Point-in-time copy of the radar.

    Attributes:
        version: Date-derived version string (YYYY.MM.DD[.N])
        technologies: Copies of every entry at creation time
        changes: Diff against the latest published snapshot
        summary: Aggregated counts
        is_published: One-way publication flag
    """
    id: str = Field(default_factory=new_id)
    version: str
    title: str
    date: datetime
    technologies: List[TechnologyEntry] = Field(default_factory=list)
    changes: SnapshotChanges = Field(default_factory=SnapshotChanges)
    summary: SnapshotSummary = Field(default_factory=SnapshotSummary)
    created_by: str
    created_at: datetime
    published_at: Optional[datetime] = None
    is_published: bool = False

    def get_technology(self, technology_id: str) -> Optional[TechnologyEntry]:
        for technology in self.technologies:
            if technology.id == technology_id:
                return technology
        return None
