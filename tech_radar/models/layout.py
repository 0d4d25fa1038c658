"""
Layout output models.

These carry everything a rendering collaborator needs to draw the radar
(rings, sector dividers, labels and dots) without redoing any geometry.
"""

from typing import List
from pydantic import BaseModel, Field

from tech_radar.models.enums import Movement, Quadrant, Ring


class PlacedTechnology(BaseModel):
    id: str
    name: str
    ring: Ring
    movement: Movement
    quadrant: Quadrant
    x: float
    y: float


class QuadrantLayout(BaseModel):
    """One angular sector (radians, clockwise on screen)."""
    key: Quadrant
    name: str
    start_angle: float
    end_angle: float
    technologies: List[PlacedTechnology] = Field(default_factory=list)


class RingLegend(BaseModel):
    key: Ring
    name: str
    inner_radius: float
    radius: float
    color: str


class LayoutMetadata(BaseModel):
    title: str
    date: str
    version: str
    width: int
    height: int
    center_x: float
    center_y: float
    max_radius: float


class RadarLayout(BaseModel):
    quadrants: List[QuadrantLayout] = Field(default_factory=list)
    rings: List[RingLegend] = Field(default_factory=list)
    metadata: LayoutMetadata

    def all_technologies(self) -> List[PlacedTechnology]:
        return [t for q in self.quadrants for t in q.technologies]
