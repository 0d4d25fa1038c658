"""
Tech Radar - technology and API lifecycle engine.

Tracks which technologies are endorsed (adopt), worth piloting (trial),
being evaluated (assess) or scheduled for removal (hold), manages the
deprecation timeline of technologies and API versions, and turns radar
snapshots into renderable coordinates.
"""

__version__ = "0.1.0"

from tech_radar.radar import TechRadar
from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, NotFound, RadarError, SchedulingInconsistency, ValidationError

__all__ = [
    "TechRadar",
    "Settings",
    "get_settings",
    "RadarError",
    "ValidationError",
    "NotFound",
    "Conflict",
    "SchedulingInconsistency",
]
